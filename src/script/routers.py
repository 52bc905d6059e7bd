from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from src.core.schemas import SuccessResponse
from src.script.schemas import (
    GenerateScriptModel,
    GenerateScriptResponse,
    SaveScriptModel,
    SaveScriptResponse,
    ScriptHistoryResponse,
    UpdateScriptModel,
)
from src.script.usecases.delete import DeleteScriptUseCase, get_delete_script_use_case
from src.script.usecases.generate import (
    GenerateScriptUseCase,
    get_generate_script_use_case,
)
from src.script.usecases.history import (
    ScriptHistoryUseCase,
    get_script_history_use_case,
)
from src.script.usecases.save import SaveScriptUseCase, get_save_script_use_case
from src.script.usecases.update import UpdateScriptUseCase, get_update_script_use_case
from src.user.auth.dependencies import get_current_user
from src.user.models import User

router = APIRouter()


@router.post("/generate", response_model=GenerateScriptResponse)
async def generate_script(
    data: GenerateScriptModel,
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[GenerateScriptUseCase, Depends(get_generate_script_use_case)],
) -> GenerateScriptResponse:
    """
    Generate an AutoHotkey script from a description.
    Fails with 403 QUOTA_EXCEEDED when the plan allows no more generations.
    """
    return await use_case.execute(data=data, user=current_user)


@router.post("/save", response_model=SaveScriptResponse)
async def save_script(
    data: SaveScriptModel,
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[SaveScriptUseCase, Depends(get_save_script_use_case)],
) -> SaveScriptResponse:
    return await use_case.execute(data=data, user=current_user)


@router.get("/history", response_model=ScriptHistoryResponse)
async def get_script_history(
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[ScriptHistoryUseCase, Depends(get_script_history_use_case)],
) -> ScriptHistoryResponse:
    return await use_case.execute(user=current_user)


@router.put("/{script_id}", response_model=SuccessResponse)
async def update_script(
    script_id: UUID,
    data: UpdateScriptModel,
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[UpdateScriptUseCase, Depends(get_update_script_use_case)],
) -> SuccessResponse:
    return await use_case.execute(script_id=script_id, data=data, user=current_user)


@router.delete("/{script_id}", response_model=SuccessResponse)
async def delete_script(
    script_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[DeleteScriptUseCase, Depends(get_delete_script_use_case)],
) -> SuccessResponse:
    return await use_case.execute(script_id=script_id, user=current_user)
