from datetime import datetime, timezone
from typing import List, Union

from pydantic import BaseModel, Field

Number = Union[int, float]


class OrderProduct(BaseModel):
    product_id: str = Field(alias="productId")
    name: str
    quantity: Number
    price: Number

    class Config:
        populate_by_name = True


class OrderCreate(BaseModel):
    order_id: str = Field(alias="orderId")
    user_id: str = Field(alias="userId")
    products: List[OrderProduct]
    status: str
    total_price: Number = Field(alias="totalPrice")  # caller supplied, not derived from products

    class Config:
        populate_by_name = True


class Order(OrderCreate):
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


def epoch_seconds(value: datetime) -> int:
    return int(value.timestamp())


def from_epoch_seconds(value: Number) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _number_value(value: Number) -> dict:
    return {"N": str(value)}


def _parse_number(value: dict) -> Number:
    raw = value["N"]
    try:
        return int(raw)
    except ValueError:
        return float(raw)


def _product_value(product: OrderProduct) -> dict:
    return {
        "M": {
            "productId": {"S": product.product_id},
            "name": {"S": product.name},
            "quantity": _number_value(product.quantity),
            "price": _number_value(product.price),
        }
    }


def _parse_product(value: dict) -> OrderProduct:
    attrs = value["M"]
    return OrderProduct(
        product_id=attrs["productId"]["S"],
        name=attrs["name"]["S"],
        quantity=_parse_number(attrs["quantity"]),
        price=_parse_number(attrs["price"]),
    )


def to_item(order: Order) -> dict:
    """Order -> DynamoDB attribute-value map."""
    return {
        "orderId": {"S": order.order_id},
        "userId": {"S": order.user_id},
        "products": {"L": [_product_value(p) for p in order.products]},
        "status": {"S": order.status},
        "totalPrice": _number_value(order.total_price),
        "createdAt": {"N": str(epoch_seconds(order.created_at))},
        "updatedAt": {"N": str(epoch_seconds(order.updated_at))},
    }


def from_item(item: dict) -> Order:
    """DynamoDB attribute-value map -> Order. Raises KeyError on a malformed item."""
    return Order(
        order_id=item["orderId"]["S"],
        user_id=item["userId"]["S"],
        products=[_parse_product(p) for p in item["products"]["L"]],
        status=item["status"]["S"],
        total_price=_parse_number(item["totalPrice"]),
        created_at=from_epoch_seconds(_parse_number(item["createdAt"])),
        updated_at=from_epoch_seconds(_parse_number(item["updatedAt"])),
    )
