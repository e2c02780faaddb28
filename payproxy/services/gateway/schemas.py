"""Request schemas for proxy endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class OrderCreateRequest(BaseModel):
    """Payload accepted by `POST /api/orders`.

    `amount` is optional here so its absence is reported by the relay as a
    validation failure rather than a schema error.
    """

    model_config = ConfigDict(extra="ignore")

    amount: int | None = Field(default=None, gt=0)
    currency: str | None = None
    receipt: str | None = None
    notes: dict[str, str] | None = None
    payment_capture: int | None = None


class OrderListFilters(BaseModel):
    """Optional filters for `GET /api/orders`, forwarded verbatim."""

    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    count: str | None = None
    skip: str | None = None

    def query_params(self) -> dict[str, str]:
        """Only the filters the caller actually supplied."""

        values = self.model_dump(by_alias=True)
        return {name: value for name, value in values.items() if value not in (None, "")}


class PaymentVerifyRequest(BaseModel):
    """Payment confirmation returned to the client by checkout."""

    model_config = ConfigDict(extra="ignore")

    payment_id: str | None = None
    order_id: str | None = None
    signature: str | None = None


class PaymentCaptureRequest(BaseModel):
    """Payload accepted by `POST /api/payments/capture`."""

    model_config = ConfigDict(extra="ignore")

    payment_id: str | None = None
    amount: int | None = Field(default=None, gt=0)
