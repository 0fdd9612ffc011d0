"""Order lifecycle: payload validation, derived fields and the status state machine.

STATE MACHINE:
    pendiente -> fabricando -> enviado -> {entregado, devolucion}

    While an order is open any of the five states is accepted as the next one,
    so an administrator can skip ahead or step back to correct a mistake. Once
    an order is entregado or devolucion it is closed: no further status change
    and no field replacement.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from . import crud, models
from .crud import utcnow
from .errors import InvalidTransition, NotFound, ValidationError
from .schemas import MAX_AMOUNT, MAX_QUANTITY, OrderDraft, OrderState, PhoneType, ShipmentType
from .utils import sanitize_text

logger = logging.getLogger(__name__)

OBSERVATION_MAX_LENGTH = 500

TERMINAL_STATES = frozenset({OrderState.DELIVERED, OrderState.RETURNED})

# open orders accept any state; closed ones accept none
TRANSITIONS = {
    state: frozenset() if state in TERMINAL_STATES else frozenset(OrderState)
    for state in OrderState
}


def parse_state(value) -> OrderState:
    try:
        return OrderState(value)
    except ValueError:
        valid = ", ".join(s.value for s in OrderState)
        raise ValidationError(f"invalid status '{value}'. Valid statuses: {valid}", field="estado") from None


def is_terminal(state) -> bool:
    return parse_state(state) in TERMINAL_STATES


def can_transition(from_state, to_state) -> bool:
    return parse_state(to_state) in TRANSITIONS[parse_state(from_state)]


# -------------------- payload validation --------------------

def _choices(enum_cls) -> str:
    return ", ".join(m.value for m in enum_cls)


# Messages keyed by the wire name of the offending field; ``n`` is the 1-indexed item.
_FIELD_MESSAGES = {
    "productos": lambda n: f"product {n} is invalid" if n else "at least one product is required",
    "nombreProducto": lambda n: f"product {n} requires a name",
    "cantidades": lambda n: f"product {n} requires a whole quantity between 1 and {MAX_QUANTITY}",
    "descripcionProducto": lambda n: f"product {n} has an invalid description",
    "imagen": lambda n: f"product {n} has an invalid image reference",
    "nombreCliente": lambda n: "customer name is required",
    "numerosTelefonicos": lambda n: f"phone {n} is invalid" if n else "at least one phone number is required",
    "numero": lambda n: f"phone {n} requires a number",
    "tipo": lambda n: f"phone {n} has an invalid type. Valid types: {_choices(PhoneType)}",
    "direccionDetallada": lambda n: "detailed address is required",
    "tipoEnvio": lambda n: f"invalid shipment type. Valid types: {_choices(ShipmentType)}",
    "precioTotal": lambda n: f"total price must be a number greater than zero and below {MAX_AMOUNT}",
    "abonodinero": lambda n: f"deposit must be a number of at least zero and below {MAX_AMOUNT}",
    "fechaEntregaDeseada": lambda n: "desired delivery date must be an ISO date (YYYY-MM-DD)",
    "vendedora": lambda n: "seller label must be text",
}


def _field_path(loc) -> str:
    parts = []
    for part in loc:
        if isinstance(part, int):
            parts[-1] = f"{parts[-1]}[{part + 1}]"
        else:
            parts.append(str(part))
    return ".".join(parts)


def _translate(exc: PydanticValidationError) -> ValidationError:
    """Turn the first pydantic error into a field-specific ValidationError."""
    if exc.error_count() == 0:
        return ValidationError("invalid order payload")
    error = exc.errors()[0]
    loc = error.get("loc", ())
    field = _field_path(loc) if loc else None
    name = next((p for p in reversed(loc) if isinstance(p, str)), None)
    index = next((p + 1 for p in reversed(loc) if isinstance(p, int)), None)
    describe = _FIELD_MESSAGES.get(name)
    if describe is None:
        return ValidationError(f"{field or 'payload'}: {error.get('msg', 'invalid value')}", field=field)
    return ValidationError(describe(index), field=field)


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def validate_payload(payload) -> OrderDraft:
    """Validate an inbound order body, returning a typed draft or raising ValidationError."""
    if not isinstance(payload, dict):
        raise ValidationError("order payload must be a JSON object")
    try:
        draft = OrderDraft.model_validate(payload)
    except PydanticValidationError as e:
        raise _translate(e) from None

    total = round_amount(draft.total_price)
    deposit = round_amount(draft.deposit)
    if total <= 0 or total >= MAX_AMOUNT:
        raise ValidationError(_FIELD_MESSAGES["precioTotal"](None), field="precioTotal")
    if deposit > total:
        raise ValidationError("deposit cannot be greater than the total price", field="abonodinero")
    return draft.model_copy(update={"total_price": total, "deposit": deposit})


def validate_observation(observation: Optional[str]) -> Optional[str]:
    if observation is None:
        return None
    if not isinstance(observation, str):
        raise ValidationError("observation must be text", field="observacionEntrega")
    text = sanitize_text(observation)
    if len(text) > OBSERVATION_MAX_LENGTH:
        raise ValidationError(
            f"observation cannot exceed {OBSERVATION_MAX_LENGTH} characters", field="observacionEntrega"
        )
    return text or None


def _child_rows(draft: OrderDraft) -> dict:
    return {
        "products": [
            models.OrderProduct(
                position=i,
                name=p.name,
                description=p.description,
                quantity=p.quantity,
                image=p.image,
            )
            for i, p in enumerate(draft.products)
        ],
        "phones": [
            models.OrderPhone(position=i, number=ph.number, kind=ph.kind.value)
            for i, ph in enumerate(draft.phones)
        ],
    }


def _draft_fields(draft: OrderDraft) -> dict:
    return {
        "customer_name": draft.customer_name,
        "address": draft.address,
        "shipment_type": draft.shipment_type.value,
        "total_price": draft.total_price,
        "deposit": draft.deposit,
        "desired_delivery_date": draft.desired_delivery_date,
        **_child_rows(draft),
    }


# -------------------- operations --------------------

def create(db: Session, payload, seller: str, seller_email: Optional[str]) -> models.Order:
    """Validate and persist a new order in state ``pendiente``.

    ``seller``/``seller_email`` come from the caller's identity, never from the payload.
    """
    draft = validate_payload(payload)
    order = models.Order(
        seller=seller,
        seller_email=seller_email,
        created_at=utcnow(),
        status=OrderState.PENDING.value,
        **_draft_fields(draft),
    )
    order_id = crud.insert_order(db, order)
    logger.info("order %s created by %s", order_id, seller_email or seller)
    return order


def update_status(db: Session, order: Optional[models.Order], target, observation: Optional[str] = None) -> models.Order:
    """Move ``order`` to ``target``; the observation is kept only for terminal targets."""
    target_state = parse_state(target)
    note = validate_observation(observation) if target_state in TERMINAL_STATES else None
    if order is None:
        raise NotFound("order")

    current = parse_state(order.status)
    if current in TERMINAL_STATES:
        logger.warning("order %s is closed (%s); rejected change to %s", order.id, current.value, target_state.value)
        raise InvalidTransition(
            current.value, target_state.value,
            message=f"order is already '{current.value}'; its status can no longer change",
        )
    if not can_transition(current, target_state):
        raise InvalidTransition(current.value, target_state.value)

    fields = {"status": target_state.value}
    if note:
        fields["delivery_note"] = note
    updated = crud.update_status(db, order.id, fields)
    if updated is None:
        raise NotFound("order")
    logger.info("order %s status %s -> %s", order.id, current.value, target_state.value)
    return updated


def update_full(
    db: Session, order: Optional[models.Order], payload, allow_relabel: bool = False
) -> models.Order:
    """Re-validate ``payload`` and replace the order's mutable fields.

    Status, creation time and the delivery observation are left untouched.
    ``vendedora`` is applied only with ``allow_relabel`` (administrators).
    """
    draft = validate_payload(payload)
    if order is None:
        raise NotFound("order")
    if is_terminal(order.status):
        raise InvalidTransition(
            order.status, message=f"order is already '{order.status}' and can no longer be edited"
        )

    fields = _draft_fields(draft)
    if allow_relabel and draft.seller:
        fields["seller"] = draft.seller
    updated = crud.replace(db, order.id, fields)
    if updated is None:
        raise NotFound("order")
    logger.info("order %s replaced", order.id)
    return updated
