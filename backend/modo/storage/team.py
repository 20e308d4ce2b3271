"""
Team Storage
Project team members and the project's material library.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select

from modo.exceptions import NotFoundError, ValidationError
from modo.models import ProjectMaterial, ProjectTeamMember, User
from modo.models.planning import MATERIAL_TYPES
from modo.storage.base import BaseStorage, utcnow
from modo.storage.projects import ProjectStorage

MEMBER_FIELDS = (
    "name",
    "email",
    "role",
    "responsibilities",
    "expertise",
    "is_modo_token_holder",
    "modo_token_address",
    "modo_token_amount",
)
MATERIAL_FIELDS = ("name", "description", "type", "file_url", "file_size", "mime_type", "category", "tags", "is_public")


class TeamStorage(BaseStorage):
    """Database storage for team members and materials, scoped to the project owner."""

    # ------------------------------------------------------------------
    # Team
    # ------------------------------------------------------------------

    async def list_members(self, project_id: str, user_id: str) -> List[ProjectTeamMember]:
        """Members in the order they joined."""
        async with self.session() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            result = await session.execute(
                select(ProjectTeamMember)
                .where(ProjectTeamMember.project_id == project_id)
                .order_by(ProjectTeamMember.joined_at)
            )
            return list(result.scalars().all())

    async def add_member(self, project_id: str, user_id: str, data: Dict[str, Any]) -> ProjectTeamMember:
        """
        添加团队成员 / Add a team member

        With `member_user_id` the member is a platform user; name and email
        default to that user's.

        Raises:
            NotFoundError: 项目或成员用户不存在 / Project or member user missing
            ValidationError: 缺少姓名 / No name given or derivable
        """
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            member_user = None
            if data.get("member_user_id"):
                member_user = await self.get_live(session, User, data["member_user_id"], "User")
            name = (data.get("name") or (member_user.name if member_user else "") or "").strip()
            if not name:
                raise ValidationError("name is required")
            member = ProjectTeamMember(
                project_id=project_id,
                member_user_id=member_user.id if member_user else None,
                name=name,
                email=member_user.email if member_user else None,
                role="member",
                modo_token_amount=0.0,
                joined_at=utcnow(),
            )
            self.apply_updates(member, {k: v for k, v in data.items() if k != "name"}, MEMBER_FIELDS)
            session.add(member)
            await session.flush()
            return member

    async def _member(self, session, project_id: str, member_id: str) -> ProjectTeamMember:
        member = await session.get(ProjectTeamMember, member_id)
        if member is None or member.project_id != project_id:
            raise NotFoundError("Team member not found")
        return member

    async def update_member(
        self, project_id: str, member_id: str, user_id: str, updates: Dict[str, Any]
    ) -> ProjectTeamMember:
        if updates.get("modo_token_amount") is not None and updates["modo_token_amount"] < 0:
            raise ValidationError("modo_token_amount must not be negative")
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            member = await self._member(session, project_id, member_id)
            self.apply_updates(member, updates, MEMBER_FIELDS)
            member.updated_at = utcnow()
            await session.flush()
            return member

    async def remove_member(self, project_id: str, member_id: str, user_id: str) -> None:
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            await session.delete(await self._member(session, project_id, member_id))

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    async def list_materials(
        self, project_id: str, user_id: str, material_type: Optional[str] = None
    ) -> List[ProjectMaterial]:
        """Materials newest first, optionally of one type."""
        stmt = select(ProjectMaterial).where(ProjectMaterial.project_id == project_id)
        if material_type:
            stmt = stmt.where(ProjectMaterial.type == material_type)
        async with self.session() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            result = await session.execute(stmt.order_by(ProjectMaterial.created_at.desc()))
            return list(result.scalars().all())

    async def add_material(self, project_id: str, user_id: str, data: Dict[str, Any]) -> ProjectMaterial:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        material_type = data.get("type")
        if material_type not in MATERIAL_TYPES:
            raise ValidationError(f"type must be one of {', '.join(MATERIAL_TYPES)}")
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            material = ProjectMaterial(project_id=project_id, name=name, uploaded_by=user_id, tags=[])
            self.apply_updates(material, {k: v for k, v in data.items() if k != "name"}, MATERIAL_FIELDS)
            session.add(material)
            await session.flush()
            return material

    async def _material(self, session, project_id: str, material_id: str) -> ProjectMaterial:
        material = await session.get(ProjectMaterial, material_id)
        if material is None or material.project_id != project_id:
            raise NotFoundError("Material not found")
        return material

    async def update_material(
        self, project_id: str, material_id: str, user_id: str, updates: Dict[str, Any]
    ) -> ProjectMaterial:
        if updates.get("type") is not None and updates["type"] not in MATERIAL_TYPES:
            raise ValidationError(f"type must be one of {', '.join(MATERIAL_TYPES)}")
        if updates.get("name") is not None and not updates["name"].strip():
            raise ValidationError("name must not be empty")
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            material = await self._material(session, project_id, material_id)
            self.apply_updates(material, updates, MATERIAL_FIELDS)
            material.updated_at = utcnow()
            await session.flush()
            return material

    async def remove_material(self, project_id: str, material_id: str, user_id: str) -> None:
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            await session.delete(await self._material(session, project_id, material_id))
