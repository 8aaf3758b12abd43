"""
Checkout submission flow.

The buyer form is validated on every field change. Submitting turns the cart
and the form into a preference request and sends it to the payment gateway
exactly once per distinct request:

- the attempt goes ``in_flight`` before the first await, so a second submit
  issued meanwhile gets the same attempt back and dispatches nothing;
- an attempt that finished (succeeded or failed) is remembered by its
  submission key and returned again for the same request;
- ``reset()`` forgets all attempts; it runs whenever the cart changes.
"""
from __future__ import annotations

import asyncio
import hashlib
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, fields
from typing import Any, Protocol

from stampshop.core.constants import (
    CURRENCY_ID,
    DEFAULT_CITY,
    DELIVERY_METHODS,
    DELIVERY_PICKUP,
    DELIVERY_SHIPPING,
    SHIPPING_COST,
)
from stampshop.core.exceptions import TransportException
from stampshop.domain.cart import CartLine
from stampshop.domain.checkout_fsm import SubmissionState, validate_submission_transition
from stampshop.domain.payment import Address, Buyer, CheckoutItem, PreferenceRequest, PreferenceResult
from stampshop.logging_config import logger
from stampshop.services.cart_store import CartStore

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
GENERIC_PAYMENT_ERROR = "Hubo un problema al iniciar el pago. Intentá nuevamente en unos minutos."


class PreferenceGateway(Protocol):
    async def create_preference(self, request: PreferenceRequest) -> PreferenceResult:
        ...


@dataclass
class CheckoutForm:
    name: str = ""
    email: str = ""
    phone: str = ""
    delivery_method: str = DELIVERY_PICKUP
    street: str = ""
    city: str = DEFAULT_CITY
    postal_code: str = ""
    pickup_acknowledged: bool = False

    @property
    def is_shipping(self) -> bool:
        return self.delivery_method == DELIVERY_SHIPPING

    @property
    def address(self) -> Address | None:
        if not self.is_shipping:
            return None
        return Address(street=self.street, city=self.city or DEFAULT_CITY, postal_code=self.postal_code)


FORM_FIELDS = frozenset(f.name for f in fields(CheckoutForm))


def validate_checkout(form: CheckoutForm, lines: Sequence[CartLine]) -> dict[str, str]:
    """Field -> message map; empty when the form can be submitted."""
    errors: dict[str, str] = {}
    if not form.name.strip():
        errors["name"] = "El nombre es obligatorio"
    if not form.email.strip():
        errors["email"] = "El email es obligatorio"
    elif not EMAIL_RE.search(form.email):
        errors["email"] = "Email inválido"
    if not form.phone.strip():
        errors["phone"] = "El teléfono es obligatorio"
    if form.delivery_method not in DELIVERY_METHODS:
        errors["delivery_method"] = "Método de entrega inválido"
    if form.is_shipping:
        if not form.street.strip():
            errors["street"] = "La calle es obligatoria"
        if not form.postal_code.strip():
            errors["postal_code"] = "El código postal es obligatorio"
    if not form.pickup_acknowledged:
        errors["pickup_acknowledged"] = "Confirmá que leíste las condiciones de entrega"
    if not lines:
        errors["cart"] = "El carrito está vacío"
    return errors


def build_preference_request(form: CheckoutForm, lines: Sequence[CartLine]) -> PreferenceRequest:
    items_total = sum(line.subtotal for line in lines)
    total = items_total + SHIPPING_COST if form.is_shipping else items_total
    return PreferenceRequest(
        cart=[
            CheckoutItem(
                product_id=line.product_id,
                title=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                customization=line.customization,
            )
            for line in lines
        ],
        buyer=Buyer(name=form.name.strip(), email=form.email.strip(), phone=form.phone.strip()),
        delivery_method=form.delivery_method,
        address=form.address,
        total=total,
    )


def submission_key(request: PreferenceRequest, currency_id: str = CURRENCY_ID) -> str:
    """Stable hash of everything that would be sent to the gateway."""
    payload = request.to_metadata()
    payload["items"] = request.preference_items(currency_id)
    serialized = json.dumps(
        payload,
        ensure_ascii=False,
        separators=(",", ":"),
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


@dataclass
class CheckoutAttempt:
    key: str
    state: SubmissionState = SubmissionState.IDLE
    preference_id: str | None = None
    redirect_url: str | None = None
    error: str | None = None

    def advance(self, target: SubmissionState) -> None:
        result = validate_submission_transition(self.state, target)
        if not result.allowed:
            raise RuntimeError(result.reason)
        self.state = target


class CheckoutFlow:
    def __init__(
        self,
        cart: CartStore,
        gateway: PreferenceGateway,
        auto_submit: bool = False,
        currency_id: str = CURRENCY_ID,
    ):
        self.cart = cart
        self.gateway = gateway
        self.auto_submit = auto_submit
        self.currency_id = currency_id
        self.form = CheckoutForm()
        self.errors: dict[str, str] = {}
        self._attempts: dict[str, CheckoutAttempt] = {}
        self._current: CheckoutAttempt | None = None
        self._reset_pending = False
        self._auto_tasks: set[asyncio.Task] = set()
        self.revalidate()

    @property
    def attempt(self) -> CheckoutAttempt | None:
        return self._current

    @property
    def state(self) -> SubmissionState:
        return self._current.state if self._current else SubmissionState.IDLE

    @property
    def can_submit(self) -> bool:
        return not self.errors and self.state is not SubmissionState.IN_FLIGHT

    def revalidate(self) -> dict[str, str]:
        self.errors = validate_checkout(self.form, self.cart.lines)
        return self.errors

    def update_field(self, name: str, value: Any) -> dict[str, str]:
        if name not in FORM_FIELDS:
            raise KeyError(f"Unknown checkout field: {name}")
        setattr(self.form, name, value)
        self.revalidate()
        if self.auto_submit and self.can_submit:
            self._schedule_submit()
        return self.errors

    def _schedule_submit(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; auto-submit skipped")
            return
        if any(not task.done() for task in self._auto_tasks):
            return
        task = loop.create_task(self.submit())
        self._auto_tasks.add(task)
        task.add_done_callback(self._auto_tasks.discard)

    def build_request(self) -> PreferenceRequest:
        return build_preference_request(self.form, self.cart.lines)

    async def submit(self) -> CheckoutAttempt | None:
        """Create the payment preference once for the current cart and form.

        Returns None when the form is invalid. Everything up to the gateway
        call runs without awaiting.
        """
        if self._current is not None and self._current.state is SubmissionState.IN_FLIGHT:
            return self._current
        if self.revalidate():
            return None

        request = self.build_request()
        key = submission_key(request, self.currency_id)
        known = self._attempts.get(key)
        if known is not None:
            self._current = known
            return known

        attempt = CheckoutAttempt(key=key)
        attempt.advance(SubmissionState.IN_FLIGHT)
        self._attempts[key] = attempt
        self._current = attempt

        try:
            result = await self.gateway.create_preference(request)
        except TransportException as exc:
            logger.warning(f"Preference request failed (status={exc.status}): {exc.message}")
            attempt.error = GENERIC_PAYMENT_ERROR
            attempt.advance(SubmissionState.FAILED)
        except Exception as exc:
            logger.error(f"Unexpected checkout failure: {exc}", exc_info=True)
            attempt.error = GENERIC_PAYMENT_ERROR
            attempt.advance(SubmissionState.FAILED)
        else:
            attempt.preference_id = result.preference_id
            attempt.redirect_url = result.redirect_url
            attempt.advance(SubmissionState.SUCCEEDED)
            logger.info(f"Checkout attempt {key[:12]} succeeded: {result.preference_id}")
        if self._reset_pending:
            self._reset_pending = False
            self._clear_attempts()
        return attempt

    def reset(self) -> None:
        """Back to idle; previous attempts no longer block a new submission.

        An attempt still in flight is kept until the gateway answers.
        """
        self.revalidate()
        if self._current is not None and self._current.state is SubmissionState.IN_FLIGHT:
            self._reset_pending = True
            return
        self._clear_attempts()

    def _clear_attempts(self) -> None:
        self._attempts.clear()
        self._current = None
