"""
Character Storage
Characters of a project and their versioned portrait images.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select

from modo.exceptions import NotFoundError, ValidationError
from modo.models import Character, CharacterImageVersion
from modo.models.project import CHARACTER_ROLES
from modo.storage.base import BaseStorage, utcnow

PROFILE_SECTIONS = (
    "physiological",
    "psychological",
    "emotional",
    "family",
    "sociocultural",
    "core_beliefs",
    "educational",
    "sociopolitics",
    "swot",
)
CHARACTER_FIELDS = ("name", "role", "age", "cast_reference", "image_url", "traits") + PROFILE_SECTIONS


class CharacterStorage(BaseStorage):
    """Database storage for characters and character image versions."""

    async def list_characters(self, project_id: str) -> Tuple[List[Character], List[Character]]:
        """Return (live, deleted) characters of a project."""
        async with self.session() as session:
            result = await session.execute(
                select(Character).where(Character.project_id == project_id).order_by(Character.created_at)
            )
            characters = list(result.scalars().all())
        live = [c for c in characters if c.deleted_at is None]
        deleted = [c for c in characters if c.deleted_at is not None]
        return live, deleted

    async def create_character(self, project_id: str, data: Dict[str, Any]) -> Character:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        role = data.get("role") or "supporting"
        if role not in CHARACTER_ROLES:
            raise ValidationError(f"Invalid character role: {role}")
        async with self.transaction() as session:
            character = Character(project_id=project_id, name=name, role=role)
            for section in PROFILE_SECTIONS:
                setattr(character, section, {})
            self.apply_updates(character, {k: v for k, v in data.items() if k not in ("name", "role")}, CHARACTER_FIELDS)
            session.add(character)
            await session.flush()
            return character

    async def get_character(self, character_id: str, project_id: Optional[str] = None) -> Character:
        async with self.session() as session:
            character = await self.get_live(session, Character, character_id, "Character")
            if project_id is not None and character.project_id != project_id:
                raise NotFoundError("Character not found")
            return character

    async def update_character(self, character_id: str, updates: Dict[str, Any]) -> Character:
        if updates.get("role") is not None and updates["role"] not in CHARACTER_ROLES:
            raise ValidationError(f"Invalid character role: {updates['role']}")
        async with self.transaction() as session:
            character = await self.get_live(session, Character, character_id, "Character")
            self.apply_updates(character, updates, CHARACTER_FIELDS)
            character.updated_at = utcnow()
            return character

    async def delete_character(self, character_id: str) -> None:
        async with self.transaction() as session:
            character = await self.get_live(session, Character, character_id, "Character")
            character.deleted_at = utcnow()

    async def restore_character(self, character_id: str) -> Character:
        async with self.transaction() as session:
            character = await session.get(Character, character_id)
            if character is None:
                raise NotFoundError("Character not found")
            character.deleted_at = None
            return character

    # ------------------------------------------------------------------
    # Image versions
    # ------------------------------------------------------------------

    async def list_image_versions(self, character_id: str) -> List[CharacterImageVersion]:
        async with self.session() as session:
            result = await session.execute(
                select(CharacterImageVersion)
                .where(CharacterImageVersion.character_id == character_id, CharacterImageVersion.deleted_at.is_(None))
                .order_by(CharacterImageVersion.version_number.desc())
            )
            return list(result.scalars().all())

    async def add_image_version(
        self,
        character_id: str,
        image_url: str,
        prompt: Optional[str] = None,
        template: Optional[str] = None,
        art_style: Optional[str] = None,
        version_name: Optional[str] = None,
        model_used: Optional[str] = None,
        credit_cost: int = 0,
    ) -> CharacterImageVersion:
        """
        新增激活的形象版本 / Add a new active image version

        Siblings are deactivated and `characters.image_url` follows the new
        version, all in one transaction.
        """
        if not image_url:
            raise ValidationError("image_url is required")
        async with self.transaction() as session:
            character = await self.get_live(session, Character, character_id, "Character")
            number = await self.next_version_number(session, CharacterImageVersion, "character_id", character_id)
            await self.deactivate_siblings(session, CharacterImageVersion, "character_id", character_id)
            version = CharacterImageVersion(
                character_id=character_id,
                version_number=number,
                version_name=version_name or f"Version {number}",
                image_url=image_url,
                prompt=prompt,
                template=template,
                art_style=art_style,
                is_active=True,
                model_used=model_used,
                credit_cost=credit_cost,
            )
            session.add(version)
            character.image_url = image_url
            await session.flush()
            return version

    async def get_image_version(self, version_id: str) -> CharacterImageVersion:
        return await self.fetch(CharacterImageVersion, version_id, "Image version")

    async def activate_image_version(self, version_id: str) -> CharacterImageVersion:
        async with self.transaction() as session:
            version = await self.activate_exclusive(
                session, CharacterImageVersion, version_id, "character_id", "Image version"
            )
            character = await session.get(Character, version.character_id)
            if character is not None:
                character.image_url = version.image_url
            return version

    async def delete_image_version(self, version_id: str) -> None:
        async with self.transaction() as session:
            version = await self.get_live(session, CharacterImageVersion, version_id, "Image version")
            version.deleted_at = utcnow()
            if version.is_active:
                version.is_active = False
                character = await session.get(Character, version.character_id)
                if character is not None:
                    character.image_url = None
