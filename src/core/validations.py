import re

# Security
# Validates a strong password with at least one lowercase letter, one uppercase letter,
# one digit, one special character, and a minimum length of 8 characters
# Example: "Passw0rd!"
STRONG_PASSWORD_VALIDATOR = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)

# Script descriptions
# Latin letters counted towards a "meaningful" description
# Example: "press ctrl+j to type my email" has 20 letters
DESCRIPTION_LETTER = re.compile(r"[a-zA-Z]")
# Minimum number of latin letters in a description
DESCRIPTION_MIN_LETTERS = 3
# Minimum trimmed length of a description
DESCRIPTION_MIN_LENGTH = 5
# Maximum raw length of a description
DESCRIPTION_MAX_LENGTH = 1000
