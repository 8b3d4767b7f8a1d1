"""SQLAlchemy implementation of the directory (membership, matter, profile) lookups."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.directory import Client, Matter, MatterVisibility, OrgMember, OrgRole
from domain.entities.profile import Profile
from infrastructure.database.models import (
    ClientModel,
    MatterModel,
    MatterParticipantModel,
    OrgMemberModel,
    ProfileModel,
)

# String stored in the DB <-> IntEnum used in domain
_ROLE_TO_ENUM: dict[str, OrgRole] = {
    "owner": OrgRole.OWNER,
    "admin": OrgRole.ADMIN,
    "member": OrgRole.MEMBER,
    "viewer": OrgRole.VIEWER,
}

_ADMIN_ROLES = ("owner", "admin")


class SQLAlchemyDirectoryRepository:
    """SQLAlchemy implementation of IDirectoryRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_member(self, org_id: str, uid: str) -> OrgMember | None:
        """Get an org membership."""
        model = await self._session.get(OrgMemberModel, (org_id, uid))
        if not model:
            return None
        return OrgMember(
            org_id=model.org_id,
            uid=model.uid,
            role=_ROLE_TO_ENUM.get(model.role, OrgRole.VIEWER),
            joined_at=model.joined_at,
        )

    async def list_admin_uids(self, org_id: str) -> list[str]:
        """UIDs of the org's admins and owners."""
        stmt = (
            select(OrgMemberModel.uid)
            .where(
                OrgMemberModel.org_id == org_id,
                OrgMemberModel.role.in_(_ADMIN_ROLES),
            )
            .order_by(OrgMemberModel.uid)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars())

    async def get_matter(self, org_id: str, matter_id: str) -> Matter | None:
        """Get a matter by ID within an org."""
        stmt = select(MatterModel).where(
            MatterModel.id == matter_id,
            MatterModel.org_id == org_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        return Matter(
            id=model.id,
            org_id=model.org_id,
            title=model.title,
            created_by=model.created_by,
            client_id=model.client_id,
            visibility=MatterVisibility(model.visibility),
            deleted_at=model.deleted_at,
        )

    async def list_participant_uids(self, org_id: str, matter_id: str) -> list[str]:
        """Explicit participants of a matter."""
        stmt = (
            select(MatterParticipantModel.uid)
            .join(MatterModel, MatterModel.id == MatterParticipantModel.matter_id)
            .where(
                MatterModel.org_id == org_id,
                MatterParticipantModel.matter_id == matter_id,
            )
            .order_by(MatterParticipantModel.uid)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars())

    async def is_participant(self, org_id: str, matter_id: str, uid: str) -> bool:
        """True when ``uid`` is an explicit participant of the matter."""
        stmt = (
            select(MatterParticipantModel.uid)
            .join(MatterModel, MatterModel.id == MatterParticipantModel.matter_id)
            .where(
                MatterModel.org_id == org_id,
                MatterParticipantModel.matter_id == matter_id,
                MatterParticipantModel.uid == uid,
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_client(self, org_id: str, client_id: str) -> Client | None:
        """Get a client by ID within an org."""
        stmt = select(ClientModel).where(
            ClientModel.id == client_id,
            ClientModel.org_id == org_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        return Client(
            id=model.id,
            org_id=model.org_id,
            name=model.name,
            display_name=model.display_name,
        )

    async def get_profile(self, uid: str) -> Profile | None:
        """Get a user's identity profile."""
        model = await self._session.get(ProfileModel, uid)
        if not model:
            return None
        return Profile(
            uid=model.uid,
            email=model.email,
            display_name=model.display_name,
            updated_at=model.updated_at,
        )
