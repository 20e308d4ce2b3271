"""
Licensing Storage
Merchandise products, the per-user cart and orders built from it.
"""

import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from modo.config import config
from modo.exceptions import NotFoundError, ValidationError
from modo.models import (
    LicenseCartItem,
    LicenseOrder,
    LicenseOrderItem,
    LicenseProduct,
    LicenseProductVariant,
    User,
)
from modo.models.commerce import ORDER_STATUSES
from modo.storage.base import BaseStorage, utcnow

PRODUCT_FIELDS = ("description", "image_url", "category", "is_active", "project_id")


def get_tax_rate() -> float:
    return float(config.get("licensing", {}).get("tax_rate", 0.11))


class LicensingStorage(BaseStorage):
    """Database storage for license products, carts and orders."""

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def list_products(
        self,
        project_id: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[LicenseProduct]:
        stmt = select(LicenseProduct).where(LicenseProduct.is_active.is_(True))
        if project_id:
            stmt = stmt.where(LicenseProduct.project_id == project_id)
        if category:
            stmt = stmt.where(LicenseProduct.category == category)
        async with self.session() as session:
            result = await session.execute(stmt.order_by(LicenseProduct.created_at.desc()))
            return list(result.scalars().all())

    async def create_product(
        self,
        name: str,
        price: float,
        variants: Optional[List[Dict[str, Any]]] = None,
        **fields: Any,
    ) -> Tuple[LicenseProduct, List[LicenseProductVariant]]:
        if not name or not name.strip():
            raise ValidationError("name is required")
        if price is None or price < 0:
            raise ValidationError("price must not be negative")
        async with self.transaction() as session:
            product = LicenseProduct(name=name.strip(), price=float(price), is_active=True)
            self.apply_updates(product, fields, PRODUCT_FIELDS)
            session.add(product)
            await session.flush()
            rows = []
            for data in variants or []:
                rows.append(
                    LicenseProductVariant(
                        product_id=product.id,
                        name=data.get("name") or "Default",
                        sku=data.get("sku"),
                        price=float(data.get("price", price)),
                    )
                )
            session.add_all(rows)
            await session.flush()
            return product, rows

    async def get_product(self, product_id: str) -> Tuple[LicenseProduct, List[LicenseProductVariant]]:
        """Product with its variants; 404 when missing."""
        async with self.session() as session:
            product = await session.get(LicenseProduct, product_id)
            if product is None:
                raise NotFoundError("Product not found")
            result = await session.execute(
                select(LicenseProductVariant)
                .where(LicenseProductVariant.product_id == product_id)
                .order_by(LicenseProductVariant.price)
            )
            return product, list(result.scalars().all())

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    @staticmethod
    async def _cart_lines(session: AsyncSession, user_id: str) -> List[Dict[str, Any]]:
        result = await session.execute(
            select(LicenseCartItem, LicenseProduct, LicenseProductVariant)
            .join(LicenseProduct, LicenseProduct.id == LicenseCartItem.product_id)
            .outerjoin(LicenseProductVariant, LicenseProductVariant.id == LicenseCartItem.variant_id)
            .where(LicenseCartItem.user_id == user_id, LicenseCartItem.deleted_at.is_(None))
            .order_by(LicenseCartItem.created_at)
        )
        lines = []
        for item, product, variant in result.all():
            unit_price = float(variant.price if variant is not None else product.price)
            lines.append(
                {
                    "id": item.id,
                    "product_id": product.id,
                    "product_name": product.name,
                    "image_url": product.image_url,
                    "variant_id": item.variant_id,
                    "variant_name": variant.name if variant is not None else None,
                    "quantity": item.quantity,
                    "unit_price": unit_price,
                    "line_total": round(unit_price * item.quantity, 2),
                }
            )
        return lines

    @staticmethod
    def _totals(lines: List[Dict[str, Any]]) -> Dict[str, float]:
        subtotal = round(sum(line["line_total"] for line in lines), 2)
        tax = round(subtotal * get_tax_rate(), 2)
        return {"subtotal": subtotal, "tax": tax, "total": round(subtotal + tax, 2)}

    async def get_cart(self, user_id: str) -> Dict[str, Any]:
        """
        获取购物车 / Cart lines and totals

        Unit price is the variant price when a variant is chosen, else the
        product price. Tax is `licensing.tax_rate` of the subtotal.
        """
        async with self.session() as session:
            lines = await self._cart_lines(session, user_id)
        return {"items": lines, "item_count": sum(line["quantity"] for line in lines), **self._totals(lines)}

    async def add_to_cart(
        self,
        user_id: str,
        product_id: str,
        variant_id: Optional[str] = None,
        quantity: int = 1,
    ) -> LicenseCartItem:
        """Add a product; an existing line for the same product and variant has its quantity increased."""
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")
        async with self.transaction() as session:
            await self.get_live(session, User, user_id, "User")
            product = await session.get(LicenseProduct, product_id)
            if product is None or not product.is_active:
                raise NotFoundError("Product not found")
            if variant_id:
                variant = await session.get(LicenseProductVariant, variant_id)
                if variant is None or variant.product_id != product_id:
                    raise NotFoundError("Variant not found")

            stmt = select(LicenseCartItem).where(
                LicenseCartItem.user_id == user_id,
                LicenseCartItem.product_id == product_id,
                LicenseCartItem.deleted_at.is_(None),
            )
            if variant_id:
                stmt = stmt.where(LicenseCartItem.variant_id == variant_id)
            else:
                stmt = stmt.where(LicenseCartItem.variant_id.is_(None))
            existing = (await session.execute(stmt)).scalars().first()
            if existing is not None:
                existing.quantity += quantity
                existing.updated_at = utcnow()
                return existing

            item = LicenseCartItem(user_id=user_id, product_id=product_id, variant_id=variant_id, quantity=quantity)
            session.add(item)
            await session.flush()
            return item

    async def update_cart_item(self, item_id: str, user_id: str, quantity: int) -> LicenseCartItem:
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")
        async with self.transaction() as session:
            item = await self.get_live(session, LicenseCartItem, item_id, "Cart item")
            if item.user_id != user_id:
                raise NotFoundError("Cart item not found")
            item.quantity = quantity
            return item

    async def remove_cart_item(self, item_id: str, user_id: str) -> None:
        async with self.transaction() as session:
            item = await self.get_live(session, LicenseCartItem, item_id, "Cart item")
            if item.user_id != user_id:
                raise NotFoundError("Cart item not found")
            item.deleted_at = utcnow()

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def create_order(
        self,
        user_id: str,
        shipping_address: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> Tuple[LicenseOrder, List[LicenseOrderItem]]:
        """
        从购物车创建订单 / Turn the cart into a pending order

        Prices are snapshotted onto the order items and the cart is cleared,
        all in one transaction.

        Raises:
            ValidationError: 购物车为空 / Cart is empty
        """
        async with self.transaction() as session:
            await self.get_live(session, User, user_id, "User")
            lines = await self._cart_lines(session, user_id)
            if not lines:
                raise ValidationError("Cart is empty")
            totals = self._totals(lines)

            order = LicenseOrder(
                user_id=user_id,
                status="pending",
                shipping_address=shipping_address,
                payment_method=payment_method or "credit_card",
                **totals,
            )
            session.add(order)
            await session.flush()

            items = [
                LicenseOrderItem(
                    order_id=order.id,
                    product_id=line["product_id"],
                    variant_id=line["variant_id"],
                    quantity=line["quantity"],
                    price=line["unit_price"],
                )
                for line in lines
            ]
            session.add_all(items)

            now = utcnow()
            for line in lines:
                cart_item = await session.get(LicenseCartItem, line["id"])
                cart_item.deleted_at = now
            await session.flush()
            return order, items

    async def list_orders(
        self,
        user_id: str,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        page = max(int(page), 1)
        limit = max(int(limit), 1)
        conditions = [LicenseOrder.user_id == user_id, LicenseOrder.deleted_at.is_(None)]
        if status and status != "all":
            conditions.append(LicenseOrder.status == status)

        async with self.session() as session:
            total = int((await session.execute(select(func.count(LicenseOrder.id)).where(*conditions))).scalar() or 0)
            result = await session.execute(
                select(LicenseOrder)
                .where(*conditions)
                .order_by(LicenseOrder.created_at.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            )
            orders = list(result.scalars().all())
            items_by_order: Dict[str, List[LicenseOrderItem]] = {o.id: [] for o in orders}
            if orders:
                item_rows = await session.execute(
                    select(LicenseOrderItem).where(LicenseOrderItem.order_id.in_(list(items_by_order)))
                )
                for item in item_rows.scalars().all():
                    items_by_order[item.order_id].append(item)

        return {
            "orders": [(order, items_by_order[order.id]) for order in orders],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    async def update_order_status(
        self,
        order_id: str,
        status: str,
        tracking_number: Optional[str] = None,
    ) -> LicenseOrder:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Invalid order status: {status}")
        async with self.transaction() as session:
            order = await self.get_live(session, LicenseOrder, order_id, "Order")
            order.status = status
            if tracking_number:
                order.tracking_number = tracking_number
            order.updated_at = utcnow()
            return order
