# File: dispatch_tracker/db/models/order_dispatch.py
"""
Order dispatch model.

One row per dispatch order (or order + product line for multi-line orders,
whose order numbers carry a letter suffix such as ``DO-416A``). Each pipeline
stage after Order Punch owns a ``planned_N`` / ``actual_N`` timestamp pair;
``actual_N`` is stamped when the stage is submitted and ``planned_N + 1`` is
set from it.
"""

from sqlalchemy import Column, String, Text, Float, DateTime, Date

from dispatch_tracker.db.models.base import AbstractBase, TimestampMixin


class OrderDispatch(AbstractBase, TimestampMixin):
    """
    Order dispatch row carrying customer, product and stage timestamp columns.
    """

    __tablename__ = "order_dispatch"

    order_no = Column(String(50), index=True, nullable=False)
    customer_name = Column(String(255))
    product_name = Column(String(255))
    sku_name = Column(String(255))
    oil_type = Column(String(100))
    order_quantity = Column(Float)
    uom = Column(String(50))
    alternate_qty_kg = Column(Float)
    approval_qty = Column(Float)
    remaining_dispatch_qty = Column(Float)
    overall_status_of_order = Column(String(100))
    delivery_date = Column(Date)
    dispatch_planning_user = Column(String(100))
    remark = Column(Text)

    # Stage 1: Pre Approval
    planned_1 = Column(DateTime)
    actual_1 = Column(DateTime)
    # Stage 2: Approval of Order
    planned_2 = Column(DateTime)
    actual_2 = Column(DateTime)
    # Stage 3: Dispatch Planning
    planned_3 = Column(DateTime)
    actual_3 = Column(DateTime)
    # Stage 4: Actual Dispatch
    planned_4 = Column(DateTime)
    actual_4 = Column(DateTime)
    # Stage 5: Vehicle Details
    planned_5 = Column(DateTime)
    actual_5 = Column(DateTime)
    # Stage 6: Material Load
    planned_6 = Column(DateTime)
    actual_6 = Column(DateTime)
    # Stage 7: Security Guard Approval
    planned_7 = Column(DateTime)
    actual_7 = Column(DateTime)
    # Stage 8: Invoice (Proforma)
    planned_8 = Column(DateTime)
    actual_8 = Column(DateTime)
    # Stage 9: Check Invoice
    planned_9 = Column(DateTime)
    actual_9 = Column(DateTime)
    # Stage 10: Gate Out
    planned_10 = Column(DateTime)
    actual_10 = Column(DateTime)
    # Stage 11: Confirm Material Receipt
    planned_11 = Column(DateTime)
    actual_11 = Column(DateTime)
    # Stage 12: Damage Adjustment
    planned_12 = Column(DateTime)
    actual_12 = Column(DateTime)
    # Stage 13: Final Delivery
    planned_13 = Column(DateTime)
    actual_13 = Column(DateTime)

    def __repr__(self) -> str:
        return f"<OrderDispatch(id={self.id}, order_no='{self.order_no}')>"
