"""Repository for the ShippingMethod aggregate."""

from shipping.domain import shipping
from shipping.method.method import ShippingMethod


@shipping.repository(part_of=ShippingMethod)
class ShippingMethodRepository:
    def find_by_code(self, code: str) -> ShippingMethod | None:
        methods = self._dao.query.filter(code=code).limit(None).all().items
        return methods[0] if methods else None

    def active(self) -> list[ShippingMethod]:
        """All active methods, lowest priority value first."""
        methods = self._dao.query.filter(is_active=True).limit(None).all().items
        return sorted(methods, key=lambda m: m.priority or 0)

    def find_default(self) -> ShippingMethod | None:
        return next((m for m in self.active() if m.is_default), None)
