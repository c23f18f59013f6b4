"""Map the API's list payloads onto one canonical ``Page``.

List endpoints have answered with at least four envelopes over time:

1. ``{"<resource>": {"content": [...], "page": .., "size": .., "total": ..}}``,
   or the inner ``{"content": [...], ...}`` object on its own
2. a bare JSON array
3. ``{"data": [...]}`` (sometimes with ``total``/``page``/``size``)
4. anything else (``null``, ``{"<resource>": null}``, an error-ish object)

``classify`` turns a raw payload into exactly one typed envelope and
``normalize_page`` turns that envelope into a ``Page``. Neither raises: an
unrecognised payload becomes an empty page.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from fastpay_sdk.config import DEFAULT_PAGE_SIZE

T = TypeVar("T")

DEFAULT_PAGE = 1

PAYMENTS = ("paiements", "payments")
TRANSFERS = ("transferts", "transfers")
BENEFICIARIES = ("beneficiaires", "beneficiaries")
GROUPED_PAYMENTS = ("grouped_payments", "groupedPayments")
MOBILE_SERVICES = ("services_mobile", "services")
COUNTRIES = ("countries", "pays")
API_KEYS = ("api_keys", "keys")
WEBHOOKS = ("webhooks",)
ORGANISATIONS = ("organisations",)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    page: int = DEFAULT_PAGE
    size: int = DEFAULT_PAGE_SIZE
    total: int = 0


# -- envelope variants -------------------------------------------------------


class _Content(BaseModel):
    content: list[Any]
    page: Any = None
    size: Any = None
    total: Any = None


class _Data(BaseModel):
    data: list[Any]
    total: Any = None


@dataclass(frozen=True)
class PagedEnvelope:
    items: list[Any]
    page: Any = None
    size: Any = None
    total: Any = None


@dataclass(frozen=True)
class ListEnvelope:
    items: list[Any]


@dataclass(frozen=True)
class DataEnvelope:
    items: list[Any]
    total: Any = None


@dataclass(frozen=True)
class EmptyEnvelope:
    pass


Envelope = PagedEnvelope | ListEnvelope | DataEnvelope | EmptyEnvelope


def classify(raw: Any, envelope_keys: tuple[str, ...] = ()) -> Envelope:
    """Identify which known envelope ``raw`` is."""

    if isinstance(raw, Page):
        return PagedEnvelope(
            items=raw.items, page=raw.page, size=raw.size, total=raw.total
        )

    if isinstance(raw, list):
        return ListEnvelope(items=raw)

    if not isinstance(raw, dict):
        return EmptyEnvelope()

    for key in envelope_keys:
        wrapped = raw.get(key)

        if isinstance(wrapped, list):
            return ListEnvelope(items=wrapped)

        if isinstance(wrapped, dict):
            try:
                paged = _Content.model_validate(wrapped)
            except ValidationError:
                continue

            return PagedEnvelope(
                items=paged.content,
                page=paged.page,
                size=paged.size,
                total=paged.total,
            )

    if "content" in raw:
        try:
            paged = _Content.model_validate(raw)
        except ValidationError:
            return EmptyEnvelope()

        return PagedEnvelope(
            items=paged.content,
            page=paged.page,
            size=paged.size,
            total=paged.total,
        )

    try:
        data = _Data.model_validate(raw)
    except ValidationError:
        return EmptyEnvelope()

    return DataEnvelope(items=data.data, total=data.total)


# -- canonicalisation ----------------------------------------------------------


def _positive(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= 1 else None


def _non_negative(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= 0 else None


def normalize_page(
    raw: Any,
    envelope_keys: tuple[str, ...] = (),
    page: int | None = None,
    size: int | None = None,
) -> Page[Any]:
    """Normalize a raw list payload into a ``Page``.

    ``page``/``size`` are the values the caller requested; they fill in
    whatever metadata the server did not send.
    """

    requested_page = _positive(page) or DEFAULT_PAGE
    requested_size = _positive(size) or DEFAULT_PAGE_SIZE

    envelope = classify(raw, envelope_keys)

    if isinstance(envelope, PagedEnvelope):
        items = list(envelope.items)
        total = _non_negative(envelope.total)
        return Page(
            items=items,
            page=_positive(envelope.page) or requested_page,
            size=_positive(envelope.size) or requested_size,
            total=max(total if total is not None else len(items), len(items)),
        )

    if isinstance(envelope, ListEnvelope):
        items = list(envelope.items)
        return Page(
            items=items,
            page=requested_page,
            size=len(items) or requested_size,
            total=len(items),
        )

    if isinstance(envelope, DataEnvelope):
        items = list(envelope.items)
        total = _non_negative(envelope.total)
        return Page(
            items=items,
            page=requested_page,
            size=requested_size,
            total=max(total or 0, len(items)),
        )

    return Page(page=requested_page, size=requested_size, total=0)
