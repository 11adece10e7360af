from typing import List
from app.models.job import Job
from app.models.offer import JobOffer, OfferMessage
from app.models.booking import Booking
from app.models.rate_card import RateCard
from app.models.product import Product
from app.models.cart import CartItem
from app.models.order import Order, OrderMessage
from app.schemas.job import JobOut
from app.schemas.offer import OfferOut
from app.schemas.booking import BookingOut
from app.schemas.rate_card import RateCardOut
from app.schemas.catalog import ProductOut
from app.schemas.cart import CartOut, CartLineOut
from app.schemas.order import OrderOut, OrderItemOut
from app.schemas.message import MessageOut
from app.core.config import settings


def build_job_response(job: Job) -> JobOut:
    return JobOut(
        id=job.id,
        buyer_org_id=job.buyer_org_id,
        created_by=job.created_by,
        service_type=job.service_type,
        crop_type=job.crop_type,
        treatment_type=job.treatment_type,
        terrain_conditions=job.terrain_conditions,
        has_obstacles=job.has_obstacles,
        field_name=job.field_name,
        field_polygon=job.field_polygon,
        area_ha=job.area_ha,
        location_lat=job.location_lat,
        location_lng=job.location_lng,
        target_date_start=job.target_date_start,
        target_date_end=job.target_date_end,
        notes=job.notes,
        status=job.status,
        accepted_offer_id=job.accepted_offer_id,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


def build_offer_response(offer: JobOffer) -> OfferOut:
    return OfferOut(
        id=offer.id,
        job_id=offer.job_id,
        operator_org_id=offer.operator_org_id,
        created_by=offer.created_by,
        status=offer.status,
        total_cents=offer.total_cents,
        currency=offer.currency,
        pricing_snapshot=offer.pricing_snapshot,
        proposed_start=offer.proposed_start,
        proposed_end=offer.proposed_end,
        provider_note=offer.provider_note,
        created_at=offer.created_at,
        updated_at=offer.updated_at,
    )


def build_booking_response(booking: Booking) -> BookingOut:
    return BookingOut(
        id=booking.id,
        job_id=booking.job_id,
        accepted_offer_id=booking.accepted_offer_id,
        buyer_org_id=booking.buyer_org_id,
        seller_org_id=booking.seller_org_id,
        executor_org_id=booking.executor_org_id,
        service_type=booking.service_type,
        total_cents=booking.total_cents,
        site_snapshot=booking.site_snapshot,
        status=booking.status,
        payment_status=booking.payment_status,
        executed_end_at=booking.executed_end_at,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


def build_rate_card_response(rate_card: RateCard) -> RateCardOut:
    return RateCardOut(
        id=rate_card.id,
        seller_org_id=rate_card.seller_org_id,
        service_type=rate_card.service_type,
        base_rate_per_ha_cents=rate_card.base_rate_per_ha_cents,
        min_charge_cents=rate_card.min_charge_cents,
        travel_fixed_cents=rate_card.travel_fixed_cents,
        travel_rate_per_km_cents=rate_card.travel_rate_per_km_cents,
        hourly_operator_rate_cents=rate_card.hourly_operator_rate_cents,
        hilly_terrain_multiplier=rate_card.hilly_terrain_multiplier,
        hilly_terrain_surcharge_cents=rate_card.hilly_terrain_surcharge_cents,
        seasonal_multipliers=rate_card.seasonal_multipliers or {},
        risk_multipliers=rate_card.risk_multipliers or {},
        custom_multipliers=rate_card.custom_multipliers or {},
        custom_surcharges=rate_card.custom_surcharges or {},
        is_active=rate_card.is_active,
        created_at=rate_card.created_at,
        updated_at=rate_card.updated_at,
    )


def build_product_response(product: Product) -> ProductOut:
    return ProductOut(
        id=product.id,
        vendor_org_id=product.vendor_org_id,
        sku=product.sku,
        name=product.name,
        category=product.category,
        description=product.description,
        price_cents=product.price_cents,
        stock=product.stock,
        is_active=product.is_active,
        created_at=product.created_at,
    )


def build_cart_response(items: List[CartItem]) -> CartOut:
    """Cart items must be loaded with their product."""
    lines = [
        CartLineOut(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product.name,
            unit_price_cents=item.product.price_cents,
            quantity=item.quantity,
            line_total_cents=item.product.price_cents * item.quantity,
        )
        for item in items
    ]
    return CartOut(
        items=lines,
        total_cents=sum(line.line_total_cents for line in lines),
        currency=settings.DEFAULT_CURRENCY,
    )


def build_order_response(order: Order) -> OrderOut:
    """Order must be loaded with its items."""
    return OrderOut(
        id=order.id,
        buyer_org_id=order.buyer_org_id,
        status=order.status,
        total_cents=order.total_cents,
        currency=order.currency,
        shipping_address=order.shipping_address,
        notes=order.notes,
        items=[
            OrderItemOut(
                product_id=item.product_id,
                product_name=item.product_name,
                unit_price_cents=item.unit_price_cents,
                quantity=item.quantity,
                line_total_cents=item.line_total_cents,
            )
            for item in order.items
        ],
        created_by=order.created_by,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def build_message_response(message: OfferMessage | OrderMessage, thread_id: int) -> MessageOut:
    """Message must be loaded with its sender."""
    sender = message.sender
    return MessageOut(
        id=message.id,
        thread_id=thread_id,
        sender_org_id=message.sender_org_id,
        sender_user_id=message.sender_user_id,
        sender_name=(sender.full_name if sender else "") or "User",
        message_text=message.body,
        is_read=message.is_read,
        created_at=message.created_at,
    )


def build_job_response_list(jobs: list) -> list:
    return [build_job_response(job) for job in jobs]


def build_offer_response_list(offers: list) -> list:
    return [build_offer_response(offer) for offer in offers]


def build_booking_response_list(bookings: list) -> list:
    return [build_booking_response(booking) for booking in bookings]
