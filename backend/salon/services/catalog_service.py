"""
Catalog management: services and combos.

Combo totals are a snapshot computed from the active member services at
create/update time; later price edits to a service do not ripple into
existing combos until the combo itself is updated.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from salon.core.exceptions import NotFoundError
from salon.domain.entities import Combo, ComboItem, Service
from salon.domain.interfaces import ICatalogRepository
from salon.schemas.dtos import ComboRequest, ComboResponse, ServiceRequest, ServiceResponse

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, catalog_repo: ICatalogRepository):
        self.catalog_repo = catalog_repo

    # ---------- services ----------
    def list_services(
        self, category: Optional[str] = None, active: Optional[bool] = None
    ) -> List[ServiceResponse]:
        return [
            ServiceResponse.from_domain(s)
            for s in self.catalog_repo.list_services(category=category, active=active)
        ]

    def get_service(self, service_id: int) -> ServiceResponse:
        return ServiceResponse.from_domain(self._service_or_404(service_id))

    def create_service(self, request: ServiceRequest) -> ServiceResponse:
        request.validate()
        created = self.catalog_repo.create_service(Service(**request.changes))
        logger.info(
            "Service created",
            extra={"context": {"service_id": created.id, "name": created.name}},
        )
        return ServiceResponse.from_domain(created)

    def update_service(self, service_id: int, request: ServiceRequest) -> ServiceResponse:
        request.validate()
        existing = self._service_or_404(service_id)
        updated = self.catalog_repo.update_service(replace(existing, **request.changes))
        return ServiceResponse.from_domain(updated)

    def set_service_status(
        self, service_id: int, is_active: Optional[bool] = None
    ) -> ServiceResponse:
        """Set the active flag, or flip it when no value is given."""
        existing = self._service_or_404(service_id)
        target = (not existing.is_active) if is_active is None else is_active
        updated = self.catalog_repo.update_service(replace(existing, is_active=target))
        return ServiceResponse.from_domain(updated)

    def delete_service(self, service_id: int) -> None:
        if not self.catalog_repo.delete_service(service_id):
            raise NotFoundError("Service not found")
        logger.info("Service deleted", extra={"context": {"service_id": service_id}})

    # ---------- combos ----------
    def list_combos(self, active: Optional[bool] = None) -> List[ComboResponse]:
        return [ComboResponse.from_domain(c) for c in self.catalog_repo.list_combos(active)]

    def get_combo(self, combo_id: int) -> ComboResponse:
        return ComboResponse.from_domain(self._combo_or_404(combo_id))

    def create_combo(self, request: ComboRequest) -> ComboResponse:
        """Create a combo from existing, active services and price it."""
        request.validate()
        items = [ComboItem(**item) for item in request.items]
        members = self._active_members(items)

        combo = Combo(items=items, **request.changes)
        combo.reprice(members)
        created = self.catalog_repo.create_combo(combo)

        logger.info(
            "Combo created",
            extra={
                "context": {
                    "combo_id": created.id,
                    "services": created.service_ids,
                    "total_price": created.total_price,
                }
            },
        )
        return ComboResponse.from_domain(created)

    def update_combo(self, combo_id: int, request: ComboRequest) -> ComboResponse:
        """Update a combo and recompute its totals from current service data.

        Validation happens before anything is written, so a rejected update
        leaves the stored combo untouched.
        """
        request.validate()
        existing = self._combo_or_404(combo_id)

        if request.items is not None:
            items = [ComboItem(**item) for item in request.items]
            members = self._active_members(items)
        else:
            items = existing.items
            members = self.catalog_repo.get_services(existing.service_ids)

        combo = replace(existing, items=items, **request.changes)
        combo.reprice(members)
        updated = self.catalog_repo.update_combo(combo)

        logger.info(
            "Combo updated",
            extra={
                "context": {
                    "combo_id": combo_id,
                    "discount": updated.discount,
                    "total_price": updated.total_price,
                }
            },
        )
        return ComboResponse.from_domain(updated)

    def set_combo_status(
        self, combo_id: int, is_active: Optional[bool] = None
    ) -> ComboResponse:
        existing = self._combo_or_404(combo_id)
        target = (not existing.is_active) if is_active is None else is_active
        updated = self.catalog_repo.update_combo(replace(existing, is_active=target))
        return ComboResponse.from_domain(updated)

    def delete_combo(self, combo_id: int) -> None:
        if not self.catalog_repo.delete_combo(combo_id):
            raise NotFoundError("Combo not found")
        logger.info("Combo deleted", extra={"context": {"combo_id": combo_id}})

    # ---------- helpers ----------
    def _active_members(self, items: List[ComboItem]) -> List[Service]:
        wanted = [item.service_id for item in items]
        found = {s.id: s for s in self.catalog_repo.get_services(wanted)}
        unavailable = [
            sid for sid in wanted if sid not in found or not found[sid].is_active
        ]
        if unavailable:
            raise NotFoundError(
                "One or more services are not available",
                {"service_ids": unavailable},
            )
        return [found[sid] for sid in wanted]

    def _service_or_404(self, service_id: int) -> Service:
        service = self.catalog_repo.lookup_service(service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def _combo_or_404(self, combo_id: int) -> Combo:
        combo = self.catalog_repo.lookup_combo(combo_id)
        if not combo:
            raise NotFoundError("Combo not found")
        return combo
