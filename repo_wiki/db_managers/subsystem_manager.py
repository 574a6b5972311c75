"""Manager for Subsystem model: CRUD using a DB session."""

from sqlalchemy.orm import Session

from ..models import Subsystem


class SubsystemManager:
    """Provides access to Subsystem model. Takes a DB session as input."""

    def __init__(self, session: Session):
        self._session = session

    def get(self, subsystem_id: int) -> Subsystem | None:
        return (
            self._session.query(Subsystem)
            .filter(Subsystem.subsystem_id == subsystem_id)
            .first()
        )

    def list_by_page(self, page_id: int) -> list[Subsystem]:
        return (
            self._session.query(Subsystem)
            .filter(Subsystem.page_id == page_id)
            .order_by(Subsystem.subsystem_id)
            .all()
        )

    def update_summary(self, subsystem_id: int, summary: str) -> Subsystem | None:
        subsystem = self.get(subsystem_id)
        if subsystem is None:
            return None
        subsystem.summary = summary
        self._session.flush()
        return subsystem
