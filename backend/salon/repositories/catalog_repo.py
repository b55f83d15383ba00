"""
Catalog repository: services and combos.

Implements both the read-only lookup consumed by the scheduler and the
management operations used by the catalog endpoints.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from salon.core.exceptions import ConflictError, NotFoundError
from salon.db.base import ComboModel, ComboServiceModel, ServiceModel
from salon.domain.entities import Combo, ComboItem, Service
from salon.domain.interfaces import ICatalogRepository

logger = logging.getLogger(__name__)


class CatalogRepository(ICatalogRepository):
    def __init__(self, db_session) -> None:
        self.db = db_session

    # ---------- lookup ----------
    def lookup_service(self, service_id: int) -> Optional[Service]:
        db_service = self.db.query(ServiceModel).filter_by(id=service_id).first()
        return self._service_to_domain(db_service) if db_service else None

    def lookup_combo(self, combo_id: int) -> Optional[Combo]:
        db_combo = self.db.query(ComboModel).filter_by(id=combo_id).first()
        return self._combo_to_domain(db_combo) if db_combo else None

    def count_active_services(self, service_ids: Sequence[int]) -> int:
        if not service_ids:
            return 0
        return (
            self.db.query(func.count(ServiceModel.id))
            .filter(ServiceModel.id.in_(list(service_ids)), ServiceModel.is_active.is_(True))
            .scalar()
            or 0
        )

    def get_services(self, service_ids: Sequence[int]) -> List[Service]:
        if not service_ids:
            return []
        rows = (
            self.db.query(ServiceModel)
            .filter(ServiceModel.id.in_(list(service_ids)))
            .all()
        )
        return [self._service_to_domain(r) for r in rows]

    # ---------- services ----------
    def list_services(
        self, category: Optional[str] = None, active: Optional[bool] = None
    ) -> List[Service]:
        query = self.db.query(ServiceModel)
        if category:
            query = query.filter(ServiceModel.category == category)
        if active is not None:
            query = query.filter(ServiceModel.is_active.is_(active))
        return [self._service_to_domain(r) for r in query.order_by(ServiceModel.name).all()]

    def create_service(self, service: Service) -> Service:
        db_service = ServiceModel(
            name=service.name,
            description=service.description,
            duration=service.duration,
            price=service.price,
            category=service.category,
            gender=service.gender,
            is_active=service.is_active,
        )
        self.db.add(db_service)
        self._commit("Service could not be saved")
        self.db.refresh(db_service)
        return self._service_to_domain(db_service)

    def update_service(self, service: Service) -> Service:
        db_service = self.db.query(ServiceModel).filter_by(id=service.id).first()
        if not db_service:
            raise NotFoundError("Service not found")
        db_service.name = service.name
        db_service.description = service.description
        db_service.duration = service.duration
        db_service.price = service.price
        db_service.category = service.category
        db_service.gender = service.gender
        db_service.is_active = service.is_active
        self._commit("Service could not be saved")
        self.db.refresh(db_service)
        return self._service_to_domain(db_service)

    def delete_service(self, service_id: int) -> bool:
        db_service = self.db.query(ServiceModel).filter_by(id=service_id).first()
        if not db_service:
            return False
        self.db.delete(db_service)
        self._commit("Service is still referenced by appointments or combos")
        return True

    # ---------- combos ----------
    def list_combos(self, active: Optional[bool] = None) -> List[Combo]:
        query = self.db.query(ComboModel)
        if active is not None:
            query = query.filter(ComboModel.is_active.is_(active))
        return [self._combo_to_domain(r) for r in query.order_by(ComboModel.name).all()]

    def create_combo(self, combo: Combo) -> Combo:
        db_combo = ComboModel(
            name=combo.name,
            description=combo.description,
            gender=combo.gender,
            discount=combo.discount,
            total_duration=combo.total_duration,
            total_price=combo.total_price,
            is_active=combo.is_active,
            items=[
                ComboServiceModel(service_id=i.service_id, sequence=i.sequence)
                for i in combo.items
            ],
        )
        self.db.add(db_combo)
        self._commit("Combo could not be saved")
        self.db.refresh(db_combo)
        return self._combo_to_domain(db_combo)

    def update_combo(self, combo: Combo) -> Combo:
        db_combo = self.db.query(ComboModel).filter_by(id=combo.id).first()
        if not db_combo:
            raise NotFoundError("Combo not found")
        db_combo.name = combo.name
        db_combo.description = combo.description
        db_combo.gender = combo.gender
        db_combo.discount = combo.discount
        db_combo.total_duration = combo.total_duration
        db_combo.total_price = combo.total_price
        db_combo.is_active = combo.is_active
        current = [(i.service_id, i.sequence) for i in db_combo.items]
        wanted = [(i.service_id, i.sequence) for i in combo.items]
        if current != wanted:
            db_combo.items = [
                ComboServiceModel(service_id=sid, sequence=seq) for sid, seq in wanted
            ]
        self._commit("Combo could not be saved")
        self.db.refresh(db_combo)
        return self._combo_to_domain(db_combo)

    def delete_combo(self, combo_id: int) -> bool:
        db_combo = self.db.query(ComboModel).filter_by(id=combo_id).first()
        if not db_combo:
            return False
        self.db.delete(db_combo)
        self._commit("Combo is still referenced by appointments")
        return True

    # ---------- helpers ----------
    def _commit(self, conflict_message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                "Catalog write rejected by constraint",
                extra={"context": {"error": str(e.orig)}},
            )
            raise ConflictError(conflict_message)

    def _service_to_domain(self, db_service: ServiceModel) -> Service:
        return Service(
            id=db_service.id,
            name=db_service.name,
            description=db_service.description,
            duration=db_service.duration,
            price=float(db_service.price) if db_service.price is not None else 0.0,
            category=db_service.category,
            gender=db_service.gender,
            is_active=bool(db_service.is_active),
            created_at=db_service.created_at,
        )

    def _combo_to_domain(self, db_combo: ComboModel) -> Combo:
        return Combo(
            id=db_combo.id,
            name=db_combo.name,
            description=db_combo.description,
            gender=db_combo.gender,
            discount=float(db_combo.discount or 0),
            items=[
                ComboItem(service_id=i.service_id, sequence=i.sequence)
                for i in db_combo.items
            ],
            total_duration=db_combo.total_duration or 0,
            total_price=float(db_combo.total_price or 0),
            is_active=bool(db_combo.is_active),
            created_at=db_combo.created_at,
        )
