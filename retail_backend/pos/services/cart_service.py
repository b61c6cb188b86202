# pos/services/cart_service.py

"""
======================================================
PATH: pos/services/cart_service.py
======================================================
CART SERVICE (IN-PROGRESS SALE ORCHESTRATOR)

Purpose:
- Own the cart of one register: lines + transaction metadata.
- Run stock validation, store scoping and VAT resolution on every mutation.
- Snapshot the cart after every mutation.
- Answer totals on demand (pure queries, nothing cached).

Collaborators (constructor-injected):
- catalog:      get_product(id), get_stock_levels(ids)
- vat_configs:  list_active_configs(store_id)
- stores:       current_store
- persistence:  CartPersistence (optional)
- numbering:    issue_number() (optional)

Rules:
- Every line belongs to the current store; out-of-scope lines are purged.
- quantity >= 1, always.
- Expected conditions (no store, out of stock, bad discount, stale async
  result, persistence failure) never raise: the mutation is rejected or
  clamped, logged, and a notification is published on self.events.
- Mutations use cached stock / VAT data only. Fresher data arrives through
  the refresh methods, tagged with request tokens; stale results are dropped.
- Mutations never call the numbering service. A cart without a number keeps a
  pending request that issue_pending_transaction_number() or
  aissue_transaction_number() completes.
- Snapshot writes happen in-line after each mutation and never raise.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping

from asgiref.sync import sync_to_async

from pos.services import staleness
from pos.services.cart_state import (
    AdHoc,
    ByProduct,
    CartLine,
    CartLineKey,
    CartState,
    DiscountType,
    TransactionDiscount,
)
from pos.services.events import (
    CartEventBus,
    CartFilteredByStore,
    DiscountRejected,
    NoStoreSelected,
    OutOfStock,
    QuantityAdjusted,
    QuantityRejected,
    TransactionNumberAssigned,
)
from pos.services.exceptions import (
    CartValidationError,
    DiscountError,
    NoStoreSelectedError,
    OutOfStockError,
    StaleDataError,
)
from pos.services.persistence import CartPersistence, line_from_snapshot
from pos.services.ports import CatalogItem, VatConfig
from pos.services.pricing import (
    CartTotals,
    cart_subtotal,
    cart_vat,
    grand_total,
    infer_discount_type,
    line_total,
    parse_discount_value,
    transaction_discount_amount,
)
from pos.services.stock_validator import StockReconciler, StockRejected, validate_stock
from pos.services.store_scope import filter_lines_by_store
from pos.services.vat_resolver import ResolvedVatRate, resolve_vat_rate

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
UNKNOWN_PRODUCT_NAME = "Unknown Product"


# ============================================================
# INPUT HELPERS
# ============================================================

def _to_int_qty(value) -> int:
    """
    Quantities are integers. Accepts int, integral Decimal/float, or digit strings.
    """
    if isinstance(value, bool) or value is None:
        raise CartValidationError("quantity must be an integer")
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise CartValidationError("quantity must be an integer")
    if not d.is_finite() or d != d.to_integral_value():
        raise CartValidationError("quantity must be an integer")
    return int(d)


def _unit_price(raw) -> Decimal:
    try:
        price = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal("0.00")
    if not price.is_finite() or price <= ZERO:
        return Decimal("0.00")
    return price


def _optional_decimal(raw) -> Decimal | None:
    if raw is None or raw == "":
        return None
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def line_key_for(item: CatalogItem) -> CartLineKey:
    if item.id is not None and item.id != "":
        return ByProduct(item.id)
    return AdHoc(item_sku(item))


def item_sku(item: CatalogItem) -> str:
    if item.sku:
        return item.sku
    return f"SKU-{item.id or 'CUSTOM'}"


# ============================================================
# SERVICE
# ============================================================

class CartService:
    def __init__(
        self,
        *,
        catalog,
        vat_configs,
        stores,
        persistence: CartPersistence | None = None,
        numbering=None,
        events: CartEventBus | None = None,
    ):
        self.catalog = catalog
        self.vat_configs = vat_configs
        self.stores = stores
        self.persistence = persistence
        self.numbering = numbering
        self.events = events or CartEventBus()

        self.tokens = staleness.RequestTokens()
        self.reconciler = StockReconciler()
        self._vat_cache: dict[str, list[VatConfig]] = {}
        self._number_request: staleness.RequestToken | None = None

        self._state = persistence.restore() if persistence else CartState()
        self._purge_out_of_scope_lines()

    @classmethod
    def from_settings(cls, *, store_id=None, events: CartEventBus | None = None) -> "CartService":
        """
        A service wired to the Django-backed collaborators and settings.POS.
        """
        from django.conf import settings

        from pos.services.numbering import DjangoTransactionNumbering
        from pos.services.persistence import ModelSnapshotStore
        from products.services import DjangoCatalog
        from store.services import ModelStoreDirectory
        from vat.services import DjangoVATConfigurationService

        pos_settings = getattr(settings, "POS", {}) or {}

        stores = ModelStoreDirectory(current_store_id=store_id)
        service = cls(
            catalog=DjangoCatalog(stores=stores),
            vat_configs=DjangoVATConfigurationService(),
            stores=stores,
            persistence=CartPersistence(
                ModelSnapshotStore(),
                key=pos_settings.get("CART_SNAPSHOT_KEY", "pos-store"),
            ),
            numbering=DjangoTransactionNumbering(
                max_retries=pos_settings.get("TRANSACTION_NUMBER_MAX_RETRIES"),
            ),
            events=events,
        )

        if store_id and service.current_store_id != str(store_id):
            service.switch_store(store_id)
        elif service.current_store_id and stores.current_store is None:
            stores.select(service.current_store_id)
        return service

    # --------------------------------------------------------
    # Read-only views
    # --------------------------------------------------------

    @property
    def lines(self) -> list[CartLine]:
        return [replace(line) for line in self._state.lines]

    @property
    def current_store_id(self) -> str | None:
        return self._state.current_store_id

    @property
    def current_customer_id(self) -> str | None:
        return self._state.current_customer_id

    @property
    def transaction_number(self) -> str | None:
        return self._state.transaction_number

    @property
    def resumed_transaction_id(self) -> str | None:
        return self._state.resumed_transaction_id

    @property
    def transaction_discount(self) -> TransactionDiscount:
        return replace(self._state.transaction_discount)

    def find_line(self, key: CartLineKey) -> CartLine | None:
        line = self._state.find(key)
        return replace(line) if line is not None else None

    # --------------------------------------------------------
    # Pure queries
    # --------------------------------------------------------

    def subtotal(self) -> Decimal:
        return cart_subtotal(self._state.lines)

    def vat(self) -> Decimal:
        return cart_vat(self._state.lines)

    def grand_total(self) -> Decimal:
        return grand_total(self._state.lines, self._state.transaction_discount.amount)

    def line_total(self, key: CartLineKey) -> Decimal | None:
        line = self._state.find(key)
        return line_total(line) if line is not None else None

    def item_count(self) -> int:
        return sum(line.quantity for line in self._state.lines)

    def totals(self) -> CartTotals:
        return CartTotals.for_lines(
            self._state.lines,
            self._state.transaction_discount.amount,
        )

    # --------------------------------------------------------
    # Mutations
    # --------------------------------------------------------

    def add_item(self, item: CatalogItem, quantity=1, store_id=None) -> CartLine | None:
        try:
            store_id = self._require_store(store_id)
            qty = _to_int_qty(quantity)
            if qty < 1:
                raise CartValidationError("quantity must be greater than zero")
        except NoStoreSelectedError:
            logger.warning("No store selected, item not added", extra={"product_name": item.name})
            self.events.publish(NoStoreSelected())
            return None
        except CartValidationError as exc:
            logger.info("Add to cart rejected: %s", exc, extra={"product_name": item.name})
            return None

        # A different store purges every current line, so the item is checked
        # as a fresh line there. The switch happens only once the add is accepted.
        switching = self._state.current_store_id != store_id

        key = line_key_for(item)
        existing = None if switching else self._state.find(key)
        current_qty = existing.quantity if existing else 0

        try:
            self._check_stock(key, qty, current_qty, item.stock if item.stock is not None else 0)
        except OutOfStockError as exc:
            logger.info(
                "Add to cart rejected: insufficient stock",
                extra={
                    "product_name": item.name,
                    "available_stock": exc.available_stock,
                    "requested_quantity": exc.requested_quantity,
                },
            )
            self.events.publish(
                OutOfStock(
                    product_name=item.name or UNKNOWN_PRODUCT_NAME,
                    available_stock=exc.available_stock,
                    requested_quantity=exc.requested_quantity,
                    current_cart_quantity=current_qty,
                )
            )
            return None

        if switching:
            self.switch_store(store_id)

        if existing is not None:
            existing.quantity += qty
            existing.store_id = store_id
            if existing.is_tracked:
                existing.stock_snapshot = item.stock
            line = existing
        else:
            line = self._new_line(item, key=key, quantity=qty, store_id=store_id)
            self._state.lines.append(line)

        if not self._state.transaction_number:
            self.request_transaction_number()

        self._persist()
        return replace(line)

    def remove_item(self, key: CartLineKey) -> bool:
        line = self._state.find(key)
        if line is None:
            return False

        self._state.lines.remove(line)
        self._persist()
        return True

    def set_quantity(self, key: CartLineKey, quantity) -> bool:
        try:
            qty = max(1, _to_int_qty(quantity))
        except CartValidationError as exc:
            logger.info("Quantity change rejected: %s", exc, extra={"quantity": repr(quantity)})
            return False

        line = self._state.find(key)
        if line is None:
            return False

        if line.is_tracked and line.stock_snapshot is not None:
            try:
                self._check_stock(key, qty, 0, line.stock_snapshot)
            except OutOfStockError as exc:
                logger.info(
                    "Quantity change rejected: insufficient stock",
                    extra={"product_name": line.name, "available_stock": exc.available_stock},
                )
                self.events.publish(
                    QuantityRejected(
                        product_name=line.name,
                        available_stock=exc.available_stock,
                        requested_quantity=qty,
                        current_cart_quantity=line.quantity,
                    )
                )
                return False

        line.quantity = qty
        self._persist()
        return True

    def set_discount(self, key: CartLineKey, raw_value, discount_type=None) -> bool:
        line = self._state.find(key)
        if line is None:
            return False

        value = parse_discount_value(raw_value)
        if value is None:
            line.clear_discount()
            self._persist()
            return True

        try:
            kind = DiscountType(discount_type) if discount_type else infer_discount_type(value)
        except ValueError:
            logger.info("Line discount rejected: unknown type", extra={"discount_type": str(discount_type)})
            return False

        line.discount_amount = value
        line.discount_type = kind
        self._persist()
        return True

    def switch_store(self, new_store_id) -> int:
        """
        Returns the number of lines purged.
        """
        new_store_id = str(new_store_id) if new_store_id else None
        if new_store_id == self._state.current_store_id:
            return 0

        result = filter_lines_by_store(self._state.lines, new_store_id)
        previous = self._state.current_store_id

        self._state.lines = result.kept
        self._state.current_store_id = new_store_id

        self.tokens.invalidate(staleness.STOCK, staleness.VAT)
        self.reconciler.reset()

        select = getattr(self.stores, "select", None)
        if callable(select):
            select(new_store_id)

        logger.info(
            "Cart store switched",
            extra={
                "from_store_id": previous,
                "to_store_id": new_store_id,
                "removed_count": result.removed_count,
            },
        )

        if new_store_id and result.removed_count > 0:
            self.events.publish(
                CartFilteredByStore(removed_count=result.removed_count, store_id=new_store_id)
            )

        self._persist()
        return result.removed_count

    def clear(self) -> None:
        self._state = CartState(current_store_id=self._state.current_store_id)
        self.tokens.invalidate(staleness.TRANSACTION_NUMBER, staleness.STOCK)
        self.reconciler.reset()
        self._persist()

    def resume_from_snapshot(self, payload) -> bool:
        from pos.serializers.snapshot import HeldSaleSerializer

        data = payload
        if isinstance(payload, (str, bytes)):
            try:
                data = json.loads(payload)
            except ValueError as exc:
                return self._resume_failed(f"not valid JSON: {exc}")

        serializer = HeldSaleSerializer(data=data)
        if not serializer.is_valid():
            return self._resume_failed(str(serializer.errors))

        current_store_id = self._state.current_store_id
        lines = []
        for item in serializer.validated_data["items"]:
            line = line_from_snapshot(item)
            if line.store_id is None:
                line.store_id = current_store_id
            lines.append(line)

        result = filter_lines_by_store(lines, current_store_id)

        self._state.lines = result.kept
        self._state.current_customer_id = None
        self._state.transaction_number = serializer.validated_data.get("transaction_number") or None

        self.tokens.invalidate(staleness.TRANSACTION_NUMBER, staleness.STOCK)
        self.reconciler.reset()
        if not self._state.transaction_number:
            self.request_transaction_number()

        if current_store_id and result.removed_count > 0:
            self.events.publish(
                CartFilteredByStore(removed_count=result.removed_count, store_id=current_store_id)
            )

        logger.info(
            "Held sale resumed",
            extra={
                "transaction_number": self._state.transaction_number,
                "line_count": len(result.kept),
            },
        )
        self._persist()
        return True

    def set_customer(self, customer_id) -> None:
        self._state.current_customer_id = str(customer_id) if customer_id else None
        self._persist()

    def set_resumed_transaction(self, held_id) -> None:
        self._state.resumed_transaction_id = str(held_id) if held_id else None
        self._persist()

    def apply_transaction_discount(self, value, discount_type=None) -> bool:
        parsed = parse_discount_value(value)
        try:
            if parsed is None:
                raise DiscountError("Please enter a valid discount amount")
            kind = DiscountType(discount_type) if discount_type else infer_discount_type(parsed)
            net_total = self.subtotal() + self.vat()
            amount = transaction_discount_amount(parsed, kind, net_total)
        except (DiscountError, ValueError) as exc:
            reason = str(exc) if isinstance(exc, DiscountError) else "Unknown discount type"
            logger.info("Transaction discount rejected: %s", reason)
            self.events.publish(DiscountRejected(reason=reason))
            return False

        self._state.transaction_discount = TransactionDiscount(
            amount=amount,
            type=kind,
            original_value=parsed,
        )
        self._persist()
        return True

    def clear_transaction_discount(self) -> None:
        self._state.transaction_discount = TransactionDiscount()
        self._persist()

    # --------------------------------------------------------
    # Transaction numbers
    # --------------------------------------------------------

    def begin_transaction_number(self) -> staleness.RequestToken:
        self._number_request = self.tokens.issue(staleness.TRANSACTION_NUMBER)
        return self._number_request

    @property
    def pending_transaction_number(self) -> staleness.RequestToken | None:
        """
        The outstanding number request, if the cart is still waiting for one.
        """
        token = self._number_request
        if token is None or not self.tokens.is_current(token):
            return None
        return token

    def request_transaction_number(self) -> staleness.RequestToken | None:
        """
        Record that this cart needs a number. Nothing is issued here; the
        caller completes the request with issue_pending_transaction_number()
        or aissue_transaction_number().
        """
        if self._state.transaction_number or self._state.is_empty:
            return None
        return self.pending_transaction_number or self.begin_transaction_number()

    def assign_transaction_number(self, number: str, token: staleness.RequestToken) -> bool:
        try:
            self.tokens.ensure_current(staleness.TRANSACTION_NUMBER, token)
        except StaleDataError as exc:
            logger.debug("%s", exc)
            return False

        if self._state.is_empty or self._state.transaction_number:
            return False

        self._state.transaction_number = number
        self.tokens.invalidate(staleness.TRANSACTION_NUMBER)
        self._number_request = None
        self.events.publish(TransactionNumberAssigned(transaction_number=number))
        self._persist()
        return True

    def issue_pending_transaction_number(self) -> bool:
        token = self.request_transaction_number()
        if token is None or self.numbering is None:
            return False
        try:
            number = self.numbering.issue_number()
        except Exception:
            # The request stays pending; the next attempt asks again.
            logger.exception("Transaction number could not be issued")
            return False
        return self.assign_transaction_number(number, token)

    async def aissue_transaction_number(self) -> bool:
        token = self.request_transaction_number()
        if token is None or self.numbering is None:
            return False
        try:
            number = await sync_to_async(self.numbering.issue_number)()
        except Exception:
            logger.exception("Transaction number could not be issued")
            return False
        return self.assign_transaction_number(number, token)

    # --------------------------------------------------------
    # Stock refresh / reconciliation
    # --------------------------------------------------------

    def tracked_product_ids(self) -> list[str]:
        return [line.product_id for line in self._state.lines if line.is_tracked]

    def begin_stock_refresh(self) -> staleness.RequestToken:
        return self.tokens.issue(staleness.STOCK)

    def complete_stock_refresh(self, token: staleness.RequestToken, levels: Mapping[str, int]) -> bool:
        try:
            self.tokens.ensure_current(staleness.STOCK, token)
        except StaleDataError as exc:
            logger.debug("%s", exc)
            return False

        self.reconcile_stock(levels)
        return True

    def refresh_stock(self) -> bool:
        token = self.begin_stock_refresh()
        try:
            levels = self.catalog.get_stock_levels(self.tracked_product_ids())
        except Exception:
            logger.exception("Stock refresh failed")
            return False
        return self.complete_stock_refresh(token, levels)

    async def arefresh_stock(self) -> bool:
        token = self.begin_stock_refresh()
        try:
            levels = await sync_to_async(self.catalog.get_stock_levels)(self.tracked_product_ids())
        except Exception:
            logger.exception("Stock refresh failed")
            return False
        return self.complete_stock_refresh(token, levels)

    def reconcile_stock(self, levels: Mapping[str, int]):
        levels = {str(pid): int(stock) for pid, stock in (levels or {}).items()}

        for line in self._state.lines:
            if line.is_tracked and line.product_id in levels:
                line.stock_snapshot = levels[line.product_id]

        plan = self.reconciler.reconcile(self._state.lines, levels)
        if plan.skipped:
            return plan

        for adjustment in plan.adjustments:
            line = self._state.find(adjustment.key)
            if line is None:
                continue

            if adjustment.quantity_changed:
                line.quantity = adjustment.new_quantity
                logger.warning(
                    "Cart quantity clamped to available stock",
                    extra={
                        "product_name": adjustment.product_name,
                        "previous_quantity": adjustment.previous_quantity,
                        "new_quantity": adjustment.new_quantity,
                    },
                )
                self.events.publish(
                    QuantityAdjusted(
                        product_name=adjustment.product_name,
                        new_quantity=adjustment.new_quantity,
                        available_stock=adjustment.available_stock,
                    )
                )

            if adjustment.out_of_stock:
                self.events.publish(
                    OutOfStock(
                        product_name=adjustment.product_name,
                        available_stock=adjustment.available_stock,
                        requested_quantity=adjustment.previous_quantity,
                        current_cart_quantity=adjustment.previous_quantity,
                    )
                )

        self._persist()
        return plan

    # --------------------------------------------------------
    # VAT configuration refresh
    # --------------------------------------------------------

    def begin_vat_refresh(self) -> staleness.RequestToken:
        return self.tokens.issue(staleness.VAT)

    def complete_vat_refresh(self, token: staleness.RequestToken, configs: Iterable[VatConfig]) -> bool:
        try:
            self.tokens.ensure_current(staleness.VAT, token)
        except StaleDataError as exc:
            logger.debug("%s", exc)
            return False

        store_id = self._state.current_store_id
        if store_id is None:
            return False

        self._vat_cache[store_id] = list(configs or [])
        for line in self._state.lines:
            line.vat_rate = self._resolve_vat(
                category=line.category,
                product_vat_rate=line.product_vat_rate,
                store_id=store_id,
            ).rate

        self._persist()
        return True

    def refresh_vat_configs(self) -> bool:
        store_id = self._state.current_store_id
        if store_id is None:
            return False

        token = self.begin_vat_refresh()
        try:
            configs = self.vat_configs.list_active_configs(store_id)
        except Exception:
            logger.exception("VAT configuration refresh failed", extra={"store_id": store_id})
            return False
        return self.complete_vat_refresh(token, configs)

    async def arefresh_vat_configs(self) -> bool:
        store_id = self._state.current_store_id
        if store_id is None:
            return False

        token = self.begin_vat_refresh()
        try:
            configs = await sync_to_async(self.vat_configs.list_active_configs)(store_id)
        except Exception:
            logger.exception("VAT configuration refresh failed", extra={"store_id": store_id})
            return False
        return self.complete_vat_refresh(token, configs)

    # --------------------------------------------------------
    # Internals
    # --------------------------------------------------------

    def _require_store(self, store_id) -> str:
        if store_id:
            return str(store_id)
        if self._state.current_store_id:
            return self._state.current_store_id

        current = getattr(self.stores, "current_store", None)
        if current is not None and current.id:
            return str(current.id)

        raise NoStoreSelectedError("No store selected")

    def _check_stock(self, key, requested_delta: int, current_qty: int, available) -> None:
        decision = validate_stock(
            key=key,
            requested_delta=requested_delta,
            current_cart_quantity=current_qty,
            available_stock=available,
        )
        if isinstance(decision, StockRejected):
            raise OutOfStockError(
                available_stock=decision.available_stock,
                requested_quantity=current_qty + requested_delta,
            )

    def _store_default_vat_rate(self, store_id: str):
        current = getattr(self.stores, "current_store", None)
        if current is not None and str(current.id) == store_id:
            return current.default_vat_rate
        return None

    def _resolve_vat(self, *, category, product_vat_rate, store_id: str) -> ResolvedVatRate:
        return resolve_vat_rate(
            category=category,
            product_vat_rate=product_vat_rate,
            store_id=store_id,
            store_default_vat_rate=self._store_default_vat_rate(store_id),
            vat_configs=self._vat_cache.get(store_id, ()),
        )

    def _new_line(self, item: CatalogItem, *, key: CartLineKey, quantity: int, store_id: str) -> CartLine:
        product_vat_rate = _optional_decimal(item.vat_rate)
        resolved = self._resolve_vat(
            category=item.category,
            product_vat_rate=product_vat_rate,
            store_id=store_id,
        )
        return CartLine(
            key=key,
            name=item.name or UNKNOWN_PRODUCT_NAME,
            sku=item_sku(item),
            unit_price=_unit_price(item.price),
            quantity=quantity,
            vat_rate=resolved.rate,
            store_id=store_id,
            stock_snapshot=item.stock if isinstance(key, ByProduct) else None,
            category=item.category,
            product_vat_rate=product_vat_rate,
        )

    def _purge_out_of_scope_lines(self) -> None:
        store_id = self._state.current_store_id
        kept = [line for line in self._state.lines if line.store_id == store_id]
        removed = len(self._state.lines) - len(kept)
        if removed:
            logger.warning(
                "Dropped restored lines outside the current store",
                extra={"store_id": store_id, "removed_count": removed},
            )
            self._state.lines = kept

    def _resume_failed(self, reason: str) -> bool:
        logger.warning("Held sale could not be resumed: %s", reason)
        self._state.lines = []
        self._state.transaction_number = None
        self.tokens.invalidate(staleness.TRANSACTION_NUMBER)
        self.reconciler.reset()
        self._persist()
        return False

    def _persist(self) -> None:
        if self.persistence is not None:
            self.persistence.save(self._state)
