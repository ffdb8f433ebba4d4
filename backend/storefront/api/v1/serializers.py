"""
Response payload builders.

Every function expects the relationships it touches to be eager-loaded
by the service that produced the object.
"""

from typing import Any

from storefront.models import (
    Address,
    Brand,
    Cart,
    CartItem,
    Category,
    Color,
    Material,
    Order,
    OrderItem,
    Product,
    Review,
    Size,
    Store,
    Tag,
    User,
    UserRole,
    Wishlist,
    WishlistItem,
)


def _ref(obj: Any) -> dict[str, Any] | None:
    if obj is None:
        return None
    return {"id": obj.id, "name": obj.name}


# ==================== Accounts ====================


def user_to_dict(user: User) -> dict[str, Any]:
    data = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "createdAt": user.created_at,
    }
    if user.role == UserRole.SELLER:
        data["sellerStatus"] = user.seller_status.value if user.seller_status else None
        data["approvedAt"] = user.approved_at
    return data


def address_to_dict(address: Address) -> dict[str, Any]:
    return {
        "id": address.id,
        "name": address.name,
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "zipCode": address.zip_code,
        "country": address.country,
        "phone": address.phone,
        "isDefault": address.is_default,
        "createdAt": address.created_at,
    }


# ==================== Catalog ====================


def attribute_to_dict(attribute: Category | Brand | Color | Material | Size | Tag) -> dict[str, Any]:
    """Serialize any catalog attribute; kind-specific fields are included when present."""
    data = {
        "id": attribute.id,
        "name": attribute.name,
        "isActive": attribute.is_active,
        "createdAt": attribute.created_at,
    }
    for column, key in (
        ("description", "description"),
        ("hex_code", "hexCode"),
        ("type", "type"),
    ):
        if hasattr(attribute, column):
            data[key] = getattr(attribute, column)
    return data


def store_to_dict(store: Store) -> dict[str, Any]:
    return {
        "id": store.id,
        "userId": store.user_id,
        "storeName": store.store_name,
        "slug": store.slug,
        "storeDescription": store.store_description,
        "storeImage": store.store_image,
        "isActive": store.is_active,
        "createdAt": store.created_at,
    }


def product_summary(product: Product) -> dict[str, Any]:
    """Card-sized product payload (category and brand must be loaded)."""
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "price": float(product.price),
        "stock": product.stock,
        "inStock": product.is_in_stock,
        "images": product.images or [],
        "category": _ref(product.category),
        "brand": _ref(product.brand),
        "averageRating": product.average_rating,
        "reviewCount": product.review_count,
        "purchases": product.purchases,
        "isActive": product.is_active,
        "createdAt": product.created_at,
    }


def product_detail(product: Product) -> dict[str, Any]:
    """Full product payload (all attribute relationships and store must be loaded)."""
    data = product_summary(product)
    data.update(
        {
            "description": product.description,
            "storeId": product.store_id,
            "store": {
                "id": product.store.id,
                "storeName": product.store.store_name,
                "storeImage": product.store.store_image,
            },
            "size": _ref(product.size),
            "color": (
                {
                    "id": product.color.id,
                    "name": product.color.name,
                    "hexCode": product.color.hex_code,
                }
                if product.color
                else None
            ),
            "material": _ref(product.material),
            "tags": [_ref(tag) for tag in product.tags],
            "popularityScore": product.popularity_score,
            "updatedAt": product.updated_at,
        }
    )
    return data


# ==================== Cart ====================


def cart_item_to_dict(item: CartItem) -> dict[str, Any]:
    product = item.product
    return {
        "id": item.id,
        "product": {
            "id": product.id,
            "name": product.name,
            "price": float(product.price),
            "images": product.images or [],
            "stock": product.stock,
            "isActive": product.is_active,
        },
        "quantity": item.quantity,
        "price": float(item.price),
        "size": _ref(item.size),
        "color": _ref(item.color),
        "subtotal": float(item.subtotal),
        "isAvailable": product.is_active and product.stock >= item.quantity,
    }


def cart_to_dict(cart: Cart) -> dict[str, Any]:
    return {
        "id": cart.id,
        "userId": cart.user_id,
        "sessionId": cart.session_id,
        "items": [cart_item_to_dict(item) for item in cart.items],
        "totalItems": cart.total_items,
        "totalPrice": float(cart.total_price),
        "updatedAt": cart.updated_at,
    }


# ==================== Orders ====================


def order_item_to_dict(item: OrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "productId": item.product_id,
        "productName": item.product_name,
        "images": item.product.images if item.product else [],
        "sellerId": item.seller_id,
        "storeId": item.store_id,
        "quantity": item.quantity,
        "price": float(item.price),
        "total": float(item.total),
        "size": _ref(item.size),
        "color": _ref(item.color),
    }


def order_to_dict(
    order: Order,
    items: list[OrderItem] | None = None,
    items_key: str = "items",
) -> dict[str, Any]:
    """Order payload; pass items to restrict the lines shown (seller view)."""
    lines = order.items if items is None else items
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "customerId": order.customer_id,
        "customer": (
            {
                "id": order.customer.id,
                "name": order.customer.name,
                "email": order.customer.email,
            }
            if order.customer
            else None
        ),
        "shippingAddress": {
            "name": order.shipping_name,
            "street": order.shipping_street,
            "city": order.shipping_city,
            "state": order.shipping_state,
            "zipCode": order.shipping_zip_code,
            "country": order.shipping_country,
            "phone": order.shipping_phone,
        },
        "paymentMethod": order.payment_method,
        "paymentStatus": order.payment_status.value,
        "orderStatus": order.order_status.value,
        "subtotal": float(order.subtotal),
        "shippingCost": float(order.shipping_cost),
        "taxAmount": float(order.tax_amount),
        "totalAmount": float(order.total_amount),
        "notes": order.notes,
        items_key: [order_item_to_dict(item) for item in lines],
        "itemsCount": sum(item.quantity for item in lines),
        "createdAt": order.created_at,
        "updatedAt": order.updated_at,
    }


# ==================== Reviews ====================


def review_to_dict(review: Review) -> dict[str, Any]:
    return {
        "id": review.id,
        "productId": review.product_id,
        "user": {"id": review.user.id, "name": review.user.name},
        "rating": review.rating,
        "title": review.title,
        "comment": review.comment,
        "createdAt": review.created_at,
        "updatedAt": review.updated_at,
    }


# ==================== Wishlists ====================


def wishlist_item_to_dict(item: WishlistItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "wishlistId": item.wishlist_id,
        "product": product_summary(item.product),
        "size": _ref(item.size),
        "color": _ref(item.color),
        "notes": item.notes,
        "priority": item.priority.value,
        "createdAt": item.created_at,
    }


def wishlist_to_dict(
    wishlist: Wishlist,
    items: list[WishlistItem] | None = None,
    item_count: int | None = None,
) -> dict[str, Any]:
    data = {
        "id": wishlist.id,
        "name": wishlist.name,
        "description": wishlist.description,
        "isDefault": wishlist.is_default,
        "isPublic": wishlist.is_public,
        "createdAt": wishlist.created_at,
        "updatedAt": wishlist.updated_at,
    }
    if items is not None:
        data["items"] = [wishlist_item_to_dict(item) for item in items]
        data["itemCount"] = len(items)
    elif item_count is not None:
        data["itemCount"] = item_count
    return data
