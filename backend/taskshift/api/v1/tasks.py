"""Task API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from taskshift.api.deps import DbSession, Memberships, VerifiedUser
from taskshift.schemas.common import SuccessResponse
from taskshift.schemas.task import TaskCreate, TaskEnvelope, TaskList, TaskResponse, TaskUpdate
from taskshift.services.membership import resolve_organization_context
from taskshift.services.task import TaskService

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
) -> TaskEnvelope:
    """Create a task (admin permission in the organization required).

    Defaults to the current organization.
    """
    org_id = data.organization_id or resolve_organization_context(user)
    task = await TaskService(db, memberships).create_task(data, org_id, user)
    return TaskEnvelope(message="Task created successfully", task=TaskResponse.model_validate(task))


@router.get("", response_model=TaskList)
async def list_tasks(
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
    organization_id: UUID | None = Query(default=None),
) -> TaskList:
    """List the tasks of the current organization."""
    org_id = organization_id or resolve_organization_context(user)
    return await TaskService(db, memberships).list_tasks(org_id, user)


@router.get("/assigned", response_model=TaskList)
async def list_assigned_tasks(
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
    organization_id: UUID | None = Query(default=None),
) -> TaskList:
    """List tasks in the current organization assigned to the current user."""
    org_id = organization_id or resolve_organization_context(user)
    return await TaskService(db, memberships).list_assigned_tasks(user.id, org_id, user)


@router.get("/{task_id}", response_model=TaskEnvelope)
async def get_task(
    task_id: UUID,
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
) -> TaskEnvelope:
    """Get one task. The caller must be a member of its organization."""
    task = await TaskService(db, memberships).get_task(task_id, user)
    return TaskEnvelope(task=TaskResponse.model_validate(task))


@router.put("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
) -> TaskEnvelope:
    """Update a task. Only fields present in the body change."""
    task = await TaskService(db, memberships).update_task(task_id, data, user)
    return TaskEnvelope(message="Task updated successfully", task=TaskResponse.model_validate(task))


@router.delete("/{task_id}", response_model=SuccessResponse)
async def delete_task(
    task_id: UUID,
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
) -> SuccessResponse:
    """Delete a task (admin permission in its organization required)."""
    await TaskService(db, memberships).delete_task(task_id, user)
    return SuccessResponse(message="Task deleted successfully")
