"""
Licensing Router / 授权商品路由

授权商品目录、购物车与订单。
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_licensing_storage
from modo.exceptions import ModoError
from modo.schemas.commerce import (
    CartAdd,
    CartUpdate,
    Order,
    OrderCreate,
    OrderItem,
    OrderStatusUpdate,
    Product,
    ProductCreate,
    ProductVariant,
)
from modo.storage.licensing import LicensingStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/license", tags=["licensing"])


def _order_payload(order, items):
    return {**Order.model_validate(order).model_dump(), "items": [OrderItem.model_validate(i) for i in items]}


# ----------------------------------------------------------------------
# Products
# ----------------------------------------------------------------------


@router.get("/products")
async def list_products(
    project_id: Optional[str] = None,
    category: Optional[str] = None,
    licensing: LicensingStorage = Depends(get_licensing_storage),
):
    try:
        products = await licensing.list_products(project_id, category)
        return {"success": True, "products": [Product.model_validate(p) for p in products]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list products: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/products", status_code=201)
async def create_product(payload: ProductCreate, licensing: LicensingStorage = Depends(get_licensing_storage)):
    try:
        product, variants = await licensing.create_product(
            payload.name,
            payload.price,
            variants=[v.model_dump() for v in payload.variants],
            **payload.model_dump(include={"project_id", "description", "image_url", "category"}),
        )
        logger.info(f"Created product {product.id} with {len(variants)} variants")
        return {
            "success": True,
            "product": Product.model_validate(product),
            "variants": [ProductVariant.model_validate(v) for v in variants],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create product {payload.name}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/products/{product_id}")
async def get_product(product_id: str, licensing: LicensingStorage = Depends(get_licensing_storage)):
    try:
        product, variants = await licensing.get_product(product_id)
        return {
            "success": True,
            "product": Product.model_validate(product),
            "variants": [ProductVariant.model_validate(v) for v in variants],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ----------------------------------------------------------------------
# Cart
# ----------------------------------------------------------------------


@router.get("/cart")
async def get_cart(user_id: str, licensing: LicensingStorage = Depends(get_licensing_storage)):
    """
    获取购物车

    Returns:
        {"success", "items", "item_count", "subtotal", "tax", "total"}
    """
    try:
        return {"success": True, **(await licensing.get_cart(user_id))}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get cart for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/cart", status_code=201)
async def add_to_cart(payload: CartAdd, licensing: LicensingStorage = Depends(get_licensing_storage)):
    try:
        await licensing.add_to_cart(payload.user_id, payload.product_id, payload.variant_id, payload.quantity)
        return {"success": True, **(await licensing.get_cart(payload.user_id))}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to add product {payload.product_id} to cart: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/cart/{item_id}")
async def update_cart_item(item_id: str, payload: CartUpdate, licensing: LicensingStorage = Depends(get_licensing_storage)):
    try:
        await licensing.update_cart_item(item_id, payload.user_id, payload.quantity)
        return {"success": True, **(await licensing.get_cart(payload.user_id))}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update cart item {item_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/cart/{item_id}")
async def remove_cart_item(item_id: str, user_id: str, licensing: LicensingStorage = Depends(get_licensing_storage)):
    try:
        await licensing.remove_cart_item(item_id, user_id)
        return {"success": True, **(await licensing.get_cart(user_id))}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to remove cart item {item_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ----------------------------------------------------------------------
# Orders
# ----------------------------------------------------------------------


@router.get("/orders")
async def list_orders(
    user_id: str,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    licensing: LicensingStorage = Depends(get_licensing_storage),
):
    try:
        listing = await licensing.list_orders(user_id, status, page, limit)
        return {
            "success": True,
            "orders": [_order_payload(order, items) for order, items in listing["orders"]],
            "pagination": listing["pagination"],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list orders for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/orders", status_code=201)
async def create_order(payload: OrderCreate, licensing: LicensingStorage = Depends(get_licensing_storage)):
    """
    由购物车下单

    价格按下单时快照保存，购物车随后清空。

    Raises:
        400: 购物车为空
    """
    try:
        order, items = await licensing.create_order(payload.user_id, payload.shipping_address, payload.payment_method)
        logger.info(f"Created order {order.id} for user {payload.user_id} total {order.total}")
        return {"success": True, "order": _order_payload(order, items)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create order for user {payload.user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/orders", response_model=Order)
async def update_order_status(payload: OrderStatusUpdate, licensing: LicensingStorage = Depends(get_licensing_storage)):
    try:
        return await licensing.update_order_status(payload.order_id, payload.status, payload.tracking_number)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update order {payload.order_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
