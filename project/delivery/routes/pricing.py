# delivery/routes/pricing.py

from fastapi import APIRouter, Request

from delivery.schemas.pricing import FeeQuoteRequest, FeeQuoteResponse
from delivery.services.pricing import quote_delivery

router = APIRouter()


@router.post(
    "/quote",
    response_model=FeeQuoteResponse,
    summary="Delivery fee for a customer point",
    response_description="The fee the server will charge at checkout",
)
async def quote(body: FeeQuoteRequest, request: Request):
    result = quote_delivery(body.customer_lat, body.customer_lng)
    await request.app.state.log.log_info("pricing", "Fee quoted", {
        "lat": body.customer_lat,
        "lng": body.customer_lng,
        "fee": result.delivery_fee,
    })
    return FeeQuoteResponse(distance_km=result.distance_km, delivery_fee=result.delivery_fee)
