# Fixed window counter.
# KEYS[1] - rate limit key, ARGV[1] - allowed requests, ARGV[2] - window in ms.
# Returns 0 when the request is allowed, otherwise the remaining window in ms.
lua_script = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local expire_time = ARGV[2]

local current = tonumber(redis.call('get', key) or "0")
if current > 0 then
    if current + 1 > limit then
        return redis.call("PTTL", key)
    else
        redis.call("INCR", key)
        return 0
    end
else
    redis.call("SET", key, 1, "px", expire_time)
    return 0
end
"""
