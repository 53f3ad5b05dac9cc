"""
Read access to a user's existing profile entries, used for duplicate checks
and the "first resume" rule.

Each query opens its own session so the four dedupe reads can run
concurrently (an AsyncSession must not be shared between tasks).
"""
from typing import List, Protocol

from sqlalchemy import select

from ..database import async_session_maker
from ..models import WorkExperience, Education, Skill, UserProject
from .resume_records import count_resumes


class ProfileStore(Protocol):
    async def get_experience(self, user_id: str) -> list: ...
    async def get_education(self, user_id: str) -> list: ...
    async def get_skills(self, user_id: str) -> list: ...
    async def get_projects(self, user_id: str) -> list: ...
    async def count_resumes(self, user_id: str) -> int: ...


class SqlProfileStore:

    def __init__(self, session_maker=async_session_maker):
        self._session_maker = session_maker

    async def _all(self, model, user_id: str) -> List:
        async with self._session_maker() as session:
            result = await session.execute(select(model).where(model.user_id == user_id))
            return list(result.scalars().all())

    async def get_experience(self, user_id: str) -> List[WorkExperience]:
        return await self._all(WorkExperience, user_id)

    async def get_education(self, user_id: str) -> List[Education]:
        return await self._all(Education, user_id)

    async def get_skills(self, user_id: str) -> List[Skill]:
        return await self._all(Skill, user_id)

    async def get_projects(self, user_id: str) -> List[UserProject]:
        return await self._all(UserProject, user_id)

    async def count_resumes(self, user_id: str) -> int:
        async with self._session_maker() as session:
            return await count_resumes(session, user_id)
