"""
Mobile Order Validation
=======================

Pure validation untuk order/visit yang dikirim device.

Every rule is evaluated; nothing short-circuits. `errors` keeps every message
and `error_codes` every violated code in evaluation order. `error_code` follows
a last-violated-wins precedence: it is the code of the last rule (in the order
below) that failed.

    1. MISSING_ORDER_ID
    2. MISSING_CUSTOMER
    3. MISSING_SALES_REP
    4. INVALID_ORDER_TYPE
    5. MISSING_PAYMENT_METHOD, INVALID_PAYMENT_METHOD_ID, MISSING_ITEMS, INVALID_ITEMS (sale)
    6. MISSING_REJECTION_REASON (visit)
    7. MISSING_DATE
"""

from typing import Any, List, Mapping, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ...schemas.mobile_order import ValidatedOrder, SaleOrder, VisitOrder
from ...schemas.base import BaseSchema
from ...schemas.validators import is_blank, is_valid_uuid, to_decimal
from ..exceptions import OrderValidationError

logger = logging.getLogger(__name__)

MISSING_ORDER_ID = 'MISSING_ORDER_ID'
MISSING_CUSTOMER = 'MISSING_CUSTOMER'
MISSING_SALES_REP = 'MISSING_SALES_REP'
INVALID_ORDER_TYPE = 'INVALID_ORDER_TYPE'
MISSING_PAYMENT_METHOD = 'MISSING_PAYMENT_METHOD'
INVALID_PAYMENT_METHOD_ID = 'INVALID_PAYMENT_METHOD_ID'
MISSING_ITEMS = 'MISSING_ITEMS'
INVALID_ITEMS = 'INVALID_ITEMS'
MISSING_REJECTION_REASON = 'MISSING_REJECTION_REASON'
MISSING_DATE = 'MISSING_DATE'
INVALID_ORDER_DATA = 'INVALID_ORDER_DATA'


class ValidationRules(BaseSchema):
    """Toggles untuk aturan validasi"""
    model_config = ConfigDict(frozen=True)

    require_payment_method: bool = True
    require_customer: bool = True
    require_sales_rep: bool = True
    require_items: bool = True


DEFAULT_RULES = ValidationRules()


class OrderValidationResult(BaseSchema):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    error_code: Optional[str] = None
    error_codes: List[str] = Field(default_factory=list)


class _Collector:
    def __init__(self):
        self.errors: List[str] = []
        self.codes: List[str] = []
        self.last_code: Optional[str] = None

    def fail(self, message: str, code: str):
        self.errors.append(message)
        if code not in self.codes:
            self.codes.append(code)
        # Last violated rule wins
        self.last_code = code

    def result(self) -> OrderValidationResult:
        return OrderValidationResult(
            is_valid=not self.errors,
            errors=self.errors,
            error_code=self.last_code,
            error_codes=self.codes,
        )


def _as_mapping(order: Union[Mapping[str, Any], BaseModel]) -> Mapping[str, Any]:
    if isinstance(order, BaseModel):
        return order.model_dump(by_alias=True)
    return order or {}


def validate_order_item(item: Any, index: int) -> List[str]:
    """Validate satu item; `index` is 0-based, messages use 1-based positions"""
    position = index + 1
    if not isinstance(item, Mapping):
        return [f'Item {position}: Item must be an object']

    errors = []
    if is_blank(item.get('productName')):
        errors.append(f'Item {position}: Product name is required')

    if is_blank(item.get('productCode')):
        errors.append(f'Item {position}: Product code is required')

    quantity = to_decimal(item.get('quantity'))
    if quantity is None or quantity <= 0:
        errors.append(f'Item {position}: Quantity must be greater than 0')

    unit_price = to_decimal(item.get('unitPrice'))
    if unit_price is None or unit_price < 0:
        errors.append(f'Item {position}: Unit price must be greater than or equal to 0')

    total = to_decimal(item.get('total'))
    if total is None or total < 0:
        errors.append(f'Item {position}: Total must be greater than or equal to 0')

    return errors


def classify_order(order: Union[Mapping[str, Any], BaseModel]) -> Optional[str]:
    """'sale', 'visit' or None when the total/rejection reason pair fits neither"""
    data = _as_mapping(order)
    total = to_decimal(data.get('total'))
    is_visit = total is not None and total == 0 and bool(data.get('rejectionReason'))
    is_sale = total is not None and total > 0
    if is_visit == is_sale:
        return None
    return 'visit' if is_visit else 'sale'


def validate_mobile_order(order: Union[Mapping[str, Any], BaseModel],
                          rules: ValidationRules = DEFAULT_RULES) -> OrderValidationResult:
    """Validate a raw device order (camelCase keys) against the business rules."""
    data = _as_mapping(order)
    check = _Collector()

    # 1. Struktur dasar
    if is_blank(data.get('id')):
        check.fail('Order ID is required', MISSING_ORDER_ID)

    # 2. Customer
    if rules.require_customer:
        if is_blank(data.get('customerId')):
            check.fail('Customer ID is required', MISSING_CUSTOMER)
        if is_blank(data.get('customerName')):
            check.fail('Customer name is required', MISSING_CUSTOMER)

    # 3. Sales rep
    if rules.require_sales_rep:
        if is_blank(data.get('salesRepId')):
            check.fail('Sales representative ID is required', MISSING_SALES_REP)
        if is_blank(data.get('salesRepName')):
            check.fail('Sales representative name is required', MISSING_SALES_REP)

    # 4. Sale atau visit
    kind = classify_order(data)
    if kind is None:
        check.fail('Order must have positive total or be a visit with rejection reason', INVALID_ORDER_TYPE)

    # 5. Sale: payment method dan items
    if kind == 'sale':
        if rules.require_payment_method:
            payment_method_id = data.get('paymentMethodId')
            if is_blank(payment_method_id):
                check.fail('Payment method ID is required for orders with value', MISSING_PAYMENT_METHOD)
            if is_blank(data.get('paymentMethod')):
                check.fail('Payment method name is required for orders with value', MISSING_PAYMENT_METHOD)
            if not is_blank(payment_method_id) and not is_valid_uuid(payment_method_id):
                check.fail('Payment method ID must be a valid UUID', INVALID_PAYMENT_METHOD_ID)

        if rules.require_items:
            items = data.get('items')
            if not isinstance(items, list) or not items:
                check.fail('Orders with value must have at least one item', MISSING_ITEMS)
            else:
                for index, item in enumerate(items):
                    for message in validate_order_item(item, index):
                        check.fail(message, INVALID_ITEMS)

    # 6. Visit: alasan penolakan
    if kind == 'visit' and is_blank(data.get('rejectionReason')):
        check.fail('Rejection reason is required for visit orders', MISSING_REJECTION_REASON)

    # 7. Tanggal
    if is_blank(data.get('date')):
        check.fail('Order date is required', MISSING_DATE)

    result = check.result()
    if result.is_valid:
        logger.debug(f"Order {data.get('id')} passed validation as {kind}")
    else:
        logger.info(
            f"Order {data.get('id')} failed validation: {result.error_code} {result.errors}"
        )
    return result


_validated_order_adapter = TypeAdapter(ValidatedOrder)


def build_validated_order(order: Union[Mapping[str, Any], BaseModel],
                          rules: ValidationRules = DEFAULT_RULES) -> Union[SaleOrder, VisitOrder]:
    """
    Validate and disambiguate an order into SaleOrder or VisitOrder.

    Raises OrderValidationError carrying the full result when any rule fails.
    The SaleOrder/VisitOrder models enforce the staging invariant even when
    rule toggles are relaxed; such violations surface as INVALID_ORDER_DATA.
    """
    data = _as_mapping(order)
    result = validate_mobile_order(data, rules)
    if not result.is_valid:
        raise OrderValidationError(result, local_id=data.get('id'))

    payload = dict(data)
    payload['kind'] = classify_order(data)
    if payload['kind'] == 'visit':
        # Visits carry no items into the staging store
        payload['items'] = []
    try:
        return _validated_order_adapter.validate_python(payload)
    except PydanticValidationError as e:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        result = OrderValidationResult(
            is_valid=False, errors=messages,
            error_code=INVALID_ORDER_DATA, error_codes=[INVALID_ORDER_DATA]
        )
        raise OrderValidationError(result, local_id=data.get('id')) from e
