from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, validates
from sqlalchemy import Integer, String, Text, Boolean, ForeignKey, DateTime

from repairdesk.constants.roles import OrderStatus, Urgency
from .user import Base, utcnow


class RepairOrder(Base):
    __tablename__ = 'orders'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False, index=True)
    assigned_to: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=OrderStatus.PENDING.value, index=True)
    # Descriptive fields are stored as given; the lifecycle never interprets them
    device_type: Mapped[str] = mapped_column(String(64), nullable=False)
    device_model: Mapped[str] = mapped_column(String(128), nullable=False)
    service_type: Mapped[str] = mapped_column(String(64), nullable=False)
    appointment_service: Mapped[Optional[str]] = mapped_column(String(64))
    liquid_metal: Mapped[Optional[bool]] = mapped_column(Boolean)
    problem_description: Mapped[Optional[str]] = mapped_column(Text)
    issue_description: Mapped[Optional[str]] = mapped_column(Text)
    service_details: Mapped[Optional[str]] = mapped_column(Text)
    urgency: Mapped[str] = mapped_column(String(16), nullable=False, default=Urgency.NORMAL.value)
    contact_name: Mapped[str] = mapped_column(String(128), nullable=False)
    contact_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    appointment_time: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @validates('user_id')
    def _owner_is_immutable(self, key, value):
        if self.user_id is not None and value != self.user_id:
            raise ValueError('order owner cannot be changed')
        return value


class OrderImage(Base):
    __tablename__ = 'order_images'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    image_url: Mapped[str] = mapped_column(String(512), nullable=False)
    image_type: Mapped[str] = mapped_column(String(32), nullable=False, default='problem')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
