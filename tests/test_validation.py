"""
Tests for mobile order validation and sale/visit disambiguation.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.schemas import SaleOrder, VisitOrder
from app.services.exceptions import OrderValidationError
from app.services.sync.validation import (
    ValidationRules,
    build_validated_order,
    classify_order,
    validate_mobile_order,
    validate_order_item,
    INVALID_ORDER_DATA,
    INVALID_ORDER_TYPE,
    INVALID_PAYMENT_METHOD_ID,
    MISSING_CUSTOMER,
    MISSING_DATE,
    MISSING_ITEMS,
    MISSING_PAYMENT_METHOD,
)


# ---------------------------------------------------------------------------
# validate_mobile_order
# ---------------------------------------------------------------------------

class TestValidateMobileOrder:
    def test_valid_sale(self, sale_payload):
        result = validate_mobile_order(sale_payload())
        assert result.is_valid
        assert result.errors == []
        assert result.error_code is None

    def test_valid_visit(self, visit_payload):
        result = validate_mobile_order(visit_payload())
        assert result.is_valid

    def test_every_rule_is_reported(self, sale_payload):
        """Missing payment method and items: both messages kept, last code wins."""
        order = sale_payload(paymentMethod=None, paymentMethodId=None, items=[])
        result = validate_mobile_order(order)

        assert not result.is_valid
        assert 'Payment method ID is required for orders with value' in result.errors
        assert 'Orders with value must have at least one item' in result.errors
        assert result.error_codes == [MISSING_PAYMENT_METHOD, MISSING_ITEMS]
        assert result.error_code == MISSING_ITEMS

    def test_sale_without_payment_method_id(self, sale_payload):
        item = {"productName": "Coffee 500g", "productCode": "P1",
                "quantity": 10, "unitPrice": 10, "total": 100}
        result = validate_mobile_order(sale_payload(paymentMethodId=None, items=[item]))

        assert not result.is_valid
        assert result.errors == ['Payment method ID is required for orders with value']
        assert result.error_code == MISSING_PAYMENT_METHOD

    def test_sale_without_items(self, sale_payload):
        result = validate_mobile_order(sale_payload(items=[]))

        assert not result.is_valid
        assert result.errors == ['Orders with value must have at least one item']
        assert result.error_code == MISSING_ITEMS

    def test_result_is_immutable(self, sale_payload):
        result = validate_mobile_order(sale_payload())
        with pytest.raises(PydanticValidationError):
            result.is_valid = False

    def test_date_is_last_in_precedence(self, sale_payload):
        result = validate_mobile_order(sale_payload(customerId="", date=""))
        assert result.error_codes == [MISSING_CUSTOMER, MISSING_DATE]
        assert result.error_code == MISSING_DATE

    def test_zero_total_without_reason_is_neither(self, sale_payload):
        result = validate_mobile_order(sale_payload(total=0, items=[]))
        assert result.error_code == INVALID_ORDER_TYPE

    def test_positive_total_with_reason_is_a_sale(self, sale_payload):
        result = validate_mobile_order(sale_payload(rejectionReason="Closed"))
        assert result.is_valid

    def test_invalid_payment_method_uuid(self, sale_payload):
        result = validate_mobile_order(sale_payload(paymentMethodId="not-a-uuid"))
        assert result.error_code == INVALID_PAYMENT_METHOD_ID

    def test_whitespace_counts_as_missing(self, sale_payload):
        result = validate_mobile_order(sale_payload(customerName="   "))
        assert result.errors == ['Customer name is required']

    def test_relaxed_rules_skip_checks(self, sale_payload):
        rules = ValidationRules(require_customer=False, require_payment_method=False)
        order = sale_payload(customerId="", paymentMethod=None, paymentMethodId=None)
        assert validate_mobile_order(order, rules).is_valid


# ---------------------------------------------------------------------------
# Items and classification
# ---------------------------------------------------------------------------

class TestItems:
    def test_messages_use_one_based_positions(self):
        errors = validate_order_item({"productCode": "P1", "quantity": 1, "unitPrice": 1, "total": 1}, 0)
        assert errors == ['Item 1: Product name is required']

    def test_bad_numbers(self):
        item = {"productName": "X", "productCode": "P", "quantity": 0, "unitPrice": -1, "total": "abc"}
        errors = validate_order_item(item, 2)
        assert errors == [
            'Item 3: Quantity must be greater than 0',
            'Item 3: Unit price must be greater than or equal to 0',
            'Item 3: Total must be greater than or equal to 0',
        ]

    def test_item_errors_are_prefixed_in_order_result(self, sale_payload):
        order = sale_payload()
        order["items"][1]["productCode"] = ""
        result = validate_mobile_order(order)
        assert result.errors == ['Item 2: Product code is required']


class TestClassifyOrder:
    @pytest.mark.parametrize("total, reason, expected", [
        (100, None, 'sale'),
        (100, "Closed", 'sale'),
        (0, "Closed", 'visit'),
        (0, None, None),
        (-5, None, None),
    ])
    def test_classification(self, total, reason, expected):
        assert classify_order({"total": total, "rejectionReason": reason}) == expected


# ---------------------------------------------------------------------------
# build_validated_order
# ---------------------------------------------------------------------------

class TestBuildValidatedOrder:
    def test_sale(self, sale_payload):
        order = build_validated_order(sale_payload())
        assert isinstance(order, SaleOrder)
        assert order.kind == 'sale'
        assert len(order.items) == 2
        assert order.items[0].unit == 'UN'

    def test_visit_drops_items(self, visit_payload):
        order = build_validated_order(visit_payload(items=[{"productName": "X"}]))
        assert isinstance(order, VisitOrder)
        assert order.items == []
        assert order.rejection_reason == "Store closed"

    def test_raises_with_full_result(self, sale_payload):
        with pytest.raises(OrderValidationError) as exc_info:
            build_validated_order(sale_payload(items=[]))
        assert exc_info.value.result.error_code == MISSING_ITEMS
        assert exc_info.value.local_id is not None

    def test_relaxed_rules_cannot_stage_an_invalid_sale(self, sale_payload):
        rules = ValidationRules(require_items=False)
        with pytest.raises(OrderValidationError) as exc_info:
            build_validated_order(sale_payload(items=[]), rules)
        assert exc_info.value.result.error_code == INVALID_ORDER_DATA
