"""
Need lifecycle operations
Stock fulfillment (stock workflow), dispatch tracking (dispatch workflow) and the stock bookkeeping behind them.

Each operation reads the rows it changes with FOR UPDATE (where the database supports it)
and commits all of its writes together; any failure rolls the whole operation back.
"""
from contextlib import contextmanager

import pandas as pd
from flask import current_app

from errors import NotFound, ValidationError, InsufficientStock, NeedCompleted
from models import (
    db, Need, Dispatch, Stock, NEED_TYPES, MAX_QUANTITY,
    DISPATCH_DISPATCHED, DISPATCH_REACHED, DISPATCH_CANCELLED,
)
from status_helpers import (
    WORKFLOW_STOCK, WORKFLOW_DISPATCH,
    STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_RESOLVED,
    STATUS_RESOURCES_DISPATCHED, STATUS_COMPLETED,
    advance_status, is_on_ladder, is_terminal, get_ladder, translate_status,
)


@contextmanager
def atomic():
    """Commit everything done inside the block at once, or nothing"""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _require_positive(name, value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    if value > MAX_QUANTITY:
        raise ValidationError(f"{name} must be at most {MAX_QUANTITY}")


def _add_capped(current, amount, label):
    total = current + amount
    if total > MAX_QUANTITY:
        raise ValidationError(f"{label} cannot exceed {MAX_QUANTITY}")
    return total


def _require_type(stock_type):
    if stock_type not in NEED_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(NEED_TYPES)}")


def _get(model, record_id, label, lock=False):
    if record_id > MAX_QUANTITY:
        raise NotFound(f"{label} not found")
    record = db.session.get(
        model,
        record_id,
        with_for_update=True if lock else None,
        populate_existing=lock,
    )
    if record is None:
        raise NotFound(f"{label} not found")
    return record


def _stock_for(stock_type, lock=True):
    query = Stock.query.filter_by(type=stock_type)
    if lock:
        query = query.with_for_update()
    return query.first()


def _require_workflow(need, workflow):
    if not is_on_ladder(need.status, workflow):
        raise ValidationError(
            f"Need {need.id} has status '{need.status}', which is not part of the {workflow} workflow"
        )


# ---------- Needs ----------
def create_need(user, need_type, description, urgency, latitude, longitude,
                required_quantity=None, default_required_quantity=1):
    """Record a new need reported by user; it always starts pending"""
    _require_type(need_type)
    required = required_quantity if required_quantity is not None else default_required_quantity
    _require_positive("requiredQuantity", required)

    with atomic():
        need = Need(
            type=need_type,
            description=description,
            urgency=urgency,
            latitude=latitude,
            longitude=longitude,
            status=STATUS_PENDING,
            required_quantity=required,
            fulfilled_quantity=0,
            created_by_id=user.id,
        )
        db.session.add(need)

    current_app.logger.info("Need %s (%s, %s urgency) reported by user %s", need.id, need_type, urgency, user.id)
    return need


# ---------- Stock workflow ----------
def fulfill(need_id, quantity):
    """
    Apply on-hand stock to a need

    Args:
        need_id: int
        quantity: int - units to take from the stock matching the need's type

    Returns:
        Need after the update

    Raises:
        ValidationError: quantity is not a positive integer, or the need is on another workflow
        NotFound: need does not exist
        InsufficientStock: not enough stock of the need's type; nothing is changed
    """
    _require_positive("quantity", quantity)

    with atomic():
        need = _get(Need, need_id, "Need", lock=True)
        _require_workflow(need, WORKFLOW_STOCK)

        stock = _stock_for(need.type)
        available = stock.quantity if stock else 0
        if available < quantity:
            raise InsufficientStock(
                f"Insufficient stock: requested {quantity} {need.type}, available {available}"
            )

        stock.quantity -= quantity
        need.fulfilled_quantity = _add_capped(need.fulfilled_quantity, quantity, "fulfilledQuantity")

        if need.fulfilled_quantity >= need.required_quantity:
            need.status = advance_status(need.status, STATUS_RESOLVED, WORKFLOW_STOCK)
        else:
            need.status = advance_status(need.status, STATUS_IN_PROGRESS, WORKFLOW_STOCK)

    current_app.logger.info(
        "Need %s fulfilled with %s %s (%s/%s), status %s",
        need.id, quantity, need.type, need.fulfilled_quantity, need.required_quantity, need.status
    )
    return need


def assign(need_id, eta, organization=None):
    """Take a pending need on: mark it in-progress with an arrival estimate"""
    _require_positive("eta", eta)

    with atomic():
        need = _get(Need, need_id, "Need", lock=True)
        _require_workflow(need, WORKFLOW_STOCK)
        if need.status != STATUS_PENDING:
            raise ValidationError("This need is already being handled")

        need.status = advance_status(need.status, STATUS_IN_PROGRESS, WORKFLOW_STOCK)
        need.eta = eta
        need.assigned_to = organization

    current_app.logger.info("Need %s assigned, eta %s minutes", need.id, eta)
    return need


# ---------- Dispatch workflow ----------
def dispatch(need_id, eta, resource_amount, user=None):
    """
    Allocate resources to a need

    Args:
        need_id: int
        eta: int - minutes until arrival, >= 1
        resource_amount: int - units sent, >= 1
        user: acting user, recorded as the dispatcher

    Returns:
        the new Dispatch

    Raises:
        ValidationError: bad eta/resource_amount, or the need is on another workflow
        NotFound: need does not exist
        NeedCompleted: need is already completed; no dispatch is created
    """
    _require_positive("eta", eta)
    _require_positive("resourceAmount", resource_amount)

    with atomic():
        need = _get(Need, need_id, "Need", lock=True)
        if is_terminal(need.status):
            raise NeedCompleted(f"Need {need.id} is already completed")
        _require_workflow(need, WORKFLOW_DISPATCH)

        record = Dispatch(
            eta=eta,
            resource_amount=resource_amount,
            status=DISPATCH_DISPATCHED,
            dispatched_by_id=user.id if user is not None else None,
        )
        need.dispatches.append(record)
        need.status = advance_status(need.status, STATUS_RESOURCES_DISPATCHED, WORKFLOW_DISPATCH)

    current_app.logger.info(
        "Dispatch %s created for need %s: %s units, eta %s minutes",
        record.id, need.id, resource_amount, eta
    )
    return record


def _apply_reached(need, record):
    _require_workflow(need, WORKFLOW_DISPATCH)
    if record.status == DISPATCH_CANCELLED:
        raise ValidationError("Cannot mark a cancelled dispatch as reached")
    if record.status == DISPATCH_REACHED:
        # Known behavior: a repeated arrival counts the amount again
        current_app.logger.warning(
            "Dispatch %s was already reached; counting its %s units again", record.id, record.resource_amount
        )

    record.status = DISPATCH_REACHED
    need.fulfilled_quantity = _add_capped(need.fulfilled_quantity, record.resource_amount, "fulfilledQuantity")
    if need.fulfilled_quantity >= need.required_quantity:
        need.status = advance_status(need.status, STATUS_COMPLETED, WORKFLOW_DISPATCH)


def mark_reached(need_id, dispatch_id):
    """
    Record that a dispatch arrived at its need

    Returns:
        tuple: (Dispatch, Need)
    """
    with atomic():
        need = _get(Need, need_id, "Need", lock=True)
        record = _get(Dispatch, dispatch_id, "Dispatch", lock=True)
        if record.need_id != need.id:
            raise NotFound("Dispatch not found for this need")
        _apply_reached(need, record)

    current_app.logger.info(
        "Dispatch %s reached need %s (%s/%s), status %s",
        record.id, need.id, need.fulfilled_quantity, need.required_quantity, need.status
    )
    return record, need


def cancel(dispatch_id):
    """Cancel a dispatch; the need's fulfilledQuantity is left as it is"""
    with atomic():
        record = _get(Dispatch, dispatch_id, "Dispatch", lock=True)
        if record.status == DISPATCH_REACHED:
            current_app.logger.warning(
                "Dispatch %s already reached its need; its %s units stay counted", record.id, record.resource_amount
            )
        record.status = DISPATCH_CANCELLED

    current_app.logger.info("Dispatch %s cancelled", record.id)
    return record


def update_dispatch_status(dispatch_id, status):
    """Move a dispatch to reached or cancelled"""
    if status == DISPATCH_CANCELLED:
        return cancel(dispatch_id)
    if status != DISPATCH_REACHED:
        raise ValidationError("Invalid status")

    with atomic():
        record = _get(Dispatch, dispatch_id, "Dispatch", lock=True)
        need = _get(Need, record.need_id, "Need", lock=True)
        _apply_reached(need, record)

    current_app.logger.info("Dispatch %s marked reached, need %s now %s", record.id, need.id, need.status)
    return record


def remove_dispatch(dispatch_id):
    """Delete a dispatch record outright"""
    with atomic():
        record = _get(Dispatch, dispatch_id, "Dispatch")
        need_id = record.need_id
        db.session.delete(record)

    current_app.logger.info("Dispatch %s removed from need %s", dispatch_id, need_id)
    return dispatch_id


# ---------- Stock ----------
def list_stock():
    return Stock.query.order_by(Stock.type.asc()).all()


def add_stock(stock_type, quantity):
    """Restock: add quantity to a type, creating its row on first use"""
    _require_type(stock_type)
    _require_positive("quantity", quantity)

    with atomic():
        stock = _stock_for(stock_type)
        if stock is None:
            stock = Stock(type=stock_type, quantity=0)
            db.session.add(stock)
        stock.quantity = _add_capped(stock.quantity, quantity, f"{stock_type} stock")

    current_app.logger.info("Stock %s increased by %s to %s", stock_type, quantity, stock.quantity)
    return stock


def set_stock(stock_type, quantity):
    """Overwrite the on-hand quantity of an existing stock type"""
    _require_type(stock_type)
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 0 <= quantity <= MAX_QUANTITY:
        raise ValidationError(f"quantity must be an integer from 0 to {MAX_QUANTITY}")

    with atomic():
        stock = _stock_for(stock_type)
        if stock is None:
            raise NotFound("Stock not found")
        stock.quantity = quantity

    current_app.logger.info("Stock %s set to %s", stock_type, quantity)
    return stock


def import_stock(csv_file):
    """
    Bulk restock from a CSV with type and quantity columns

    Args:
        csv_file: path or file-like object

    Returns:
        dict: {'created': int, 'updated': int, 'skipped': int}
    """
    try:
        df = pd.read_csv(csv_file)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise ValidationError(f"Could not read CSV: {exc}") from None

    df.columns = [str(column).strip().lower() for column in df.columns]
    missing = {"type", "quantity"} - set(df.columns)
    if missing:
        raise ValidationError(f"CSV is missing column(s): {', '.join(sorted(missing))}")

    created, updated, skipped = 0, 0, 0
    with atomic():
        for _, row in df.iterrows():
            stock_type = str(row.get("type", "")).strip().lower()
            try:
                raw = float(row.get("quantity"))
            except (TypeError, ValueError):
                skipped += 1
                continue
            # Fractional, blank (NaN) and infinite quantities are rejected
            if not raw.is_integer():
                skipped += 1
                continue
            quantity = int(raw)
            if stock_type not in NEED_TYPES or not 1 <= quantity <= MAX_QUANTITY:
                skipped += 1
                continue

            stock = _stock_for(stock_type)
            if stock is None:
                stock = Stock(type=stock_type, quantity=0)
                db.session.add(stock)
                created += 1
            else:
                updated += 1
            stock.quantity = _add_capped(stock.quantity, quantity, f"{stock_type} stock")

    current_app.logger.info("Stock import: created %s, updated %s, skipped %s", created, updated, skipped)
    return {"created": created, "updated": updated, "skipped": skipped}


# ---------- Workflow switch ----------
def migrate_need_statuses(from_workflow, to_workflow):
    """
    Rewrite need statuses from one workflow ladder onto the other

    Returns:
        int: number of needs whose status changed
    """
    mapping = {}
    for status in get_ladder(from_workflow):
        translated = translate_status(status, from_workflow, to_workflow)
        if translated != status:
            mapping[status] = translated

    if not mapping:
        return 0

    with atomic():
        needs = Need.query.filter(Need.status.in_(list(mapping))).all()
        for need in needs:
            need.status = mapping[need.status]

    current_app.logger.info("Migrated %s need(s) from the %s to the %s workflow", len(needs), from_workflow, to_workflow)
    return len(needs)
