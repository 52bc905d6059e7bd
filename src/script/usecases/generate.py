from fastapi import Depends

from loggers import get_logger
from src.script.schemas import GenerateScriptModel, GenerateScriptResponse
from src.script.services.generator import ScriptGenerator, get_script_generator
from src.usage.ledger import UsageLedger, get_usage_ledger
from src.user.models import User

logger = get_logger(__name__)


class GenerateScriptUseCase:
    """
    Quota check, generation, accounting.

    Nothing is counted when generation fails.
    """

    def __init__(self, ledger: UsageLedger, generator: ScriptGenerator) -> None:
        self.ledger = ledger
        self.generator = generator

    async def execute(
        self, data: GenerateScriptModel, user: User
    ) -> GenerateScriptResponse:
        grant = await self.ledger.authorize(user)
        script = await self.generator.generate(data.description)
        await self.ledger.record(grant)
        logger.info("[GenerateScript] Script generated for user %s.", user.id)
        return GenerateScriptResponse(script=script)


def get_generate_script_use_case(
    ledger: UsageLedger = Depends(get_usage_ledger),
    generator: ScriptGenerator = Depends(get_script_generator),
) -> GenerateScriptUseCase:
    return GenerateScriptUseCase(ledger=ledger, generator=generator)
