"""Task service."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.core.errors import NotFound
from taskshift.core.logging import get_logger
from taskshift.models.task import Task
from taskshift.models.user import User
from taskshift.schemas.task import TaskCreate, TaskList, TaskResponse, TaskUpdate
from taskshift.services.membership import MembershipService

logger = get_logger("service.task")


class TaskService:
    """Service for the task board.

    Every operation authorizes through the membership ledger: reads need an
    active membership in the task's organization, writes need admin
    permission there.
    """

    def __init__(self, db: AsyncSession, memberships: MembershipService | None = None) -> None:
        self.db = db
        self.memberships = memberships or MembershipService(db)

    async def create_task(self, data: TaskCreate, org_id: UUID, creator: User) -> Task:
        """Create a task in an organization.

        Raises:
            NotMember / AdminPermissionRequired: creator is not an admin there
        """
        await self.memberships.require_admin(org_id, creator.id)

        task = Task(
            title=data.title,
            description=data.description,
            created_by=creator.id,
            organization_id=org_id,
            assignees=[assignee.to_record() for assignee in data.assignees],
            status=data.status or "pending",
            due_date=data.due_date,
        )
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)

        logger.info(
            "task_created",
            task_id=str(task.id),
            org_id=str(org_id),
            created_by=str(creator.id),
            assignee_count=len(task.assignees),
        )
        return task

    async def _get(self, task_id: UUID) -> Task:
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFound("Task not found", code="TASK_NOT_FOUND")
        return task

    async def get_task(self, task_id: UUID, actor: User) -> Task:
        """Get a task visible to the actor.

        Raises:
            NotFound: no such task
            NotMember: actor is not an active member of the task's organization
        """
        task = await self._get(task_id)
        await self.memberships.require_member(task.organization_id, actor.id)
        return task

    async def list_tasks(self, org_id: UUID, actor: User) -> TaskList:
        """List all tasks of an organization, newest first."""
        await self.memberships.require_member(org_id, actor.id)
        result = await self.db.execute(
            select(Task).where(Task.organization_id == org_id).order_by(Task.created_at.desc())
        )
        tasks = result.scalars().all()
        return TaskList(
            organization_id=org_id,
            tasks=[TaskResponse.model_validate(task) for task in tasks],
            total=len(tasks),
        )

    async def list_assigned_tasks(self, user_id: UUID, org_id: UUID, actor: User) -> TaskList:
        """List an organization's tasks that have the user among their assignees.

        Matches both assignee snapshots and legacy bare user ids.
        """
        await self.memberships.require_member(org_id, actor.id)
        result = await self.db.execute(
            select(Task).where(Task.organization_id == org_id).order_by(Task.created_at.desc())
        )
        # JSON containment differs per dialect, so filter in Python
        tasks = [task for task in result.scalars().all() if str(user_id) in task.assignee_user_ids()]
        return TaskList(
            organization_id=org_id,
            tasks=[TaskResponse.model_validate(task) for task in tasks],
            total=len(tasks),
        )

    async def update_task(self, task_id: UUID, data: TaskUpdate, actor: User) -> Task:
        """Apply a partial update.

        Admin permission is checked in the task's current organization, and
        also in the target organization when the task is moved.
        """
        task = await self._get(task_id)
        await self.memberships.require_admin(task.organization_id, actor.id)

        changes = data.model_dump(exclude_unset=True)
        target_org = changes.get("organization_id")
        if target_org is not None and target_org != task.organization_id:
            await self.memberships.require_admin(target_org, actor.id)

        if "assignees" in changes:
            changes["assignees"] = [assignee.to_record() for assignee in data.assignees or []]

        for field, value in changes.items():
            setattr(task, field, value)

        await self.db.flush()
        await self.db.refresh(task)

        logger.info("task_updated", task_id=str(task.id), fields=sorted(changes), actor_id=str(actor.id))
        return task

    async def delete_task(self, task_id: UUID, actor: User) -> None:
        """Delete a task (admin permission in its organization)."""
        task = await self._get(task_id)
        await self.memberships.require_admin(task.organization_id, actor.id)
        await self.db.delete(task)
        await self.db.flush()
        logger.info("task_deleted", task_id=str(task_id), actor_id=str(actor.id))
