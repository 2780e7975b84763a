"""
Panel models.

A panel is a pool of interviewers with two independent sources of bookable
time: explicit per-date availability (with concrete slots) and weekday rules
that can be expanded into per-date availability.
"""

import datetime as dt
import uuid
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hiring_pipeline.models.base_model import TimestampedModel


class Panel(TimestampedModel):
    """
    Panel table - a named group of interviewers.
    """

    __tablename__ = "panel"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Interviewer user ids (stored as strings; users live outside this service)
    members: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    # Informational label only; slot times are compared as same-day values
    timezone: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="UTC",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    availability: Mapped[List["PanelAvailability"]] = relationship(
        "PanelAvailability",
        back_populates="panel",
        cascade="all, delete-orphan",
        order_by="PanelAvailability.date",
        lazy="selectin",
    )

    recurring_rules: Mapped[List["RecurringRule"]] = relationship(
        "RecurringRule",
        back_populates="panel",
        cascade="all, delete-orphan",
        order_by="RecurringRule.day_of_week",
        lazy="selectin",
    )


class PanelAvailability(TimestampedModel):
    """
    One calendar date of explicit availability for a panel.

    At most one row per (panel, date); its slots are replaced as a whole.
    """

    __tablename__ = "panel_availability"

    panel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("panel.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
    )

    panel: Mapped["Panel"] = relationship(
        "Panel",
        back_populates="availability",
    )

    time_slots: Mapped[List["PanelTimeSlot"]] = relationship(
        "PanelTimeSlot",
        back_populates="availability",
        cascade="all, delete-orphan",
        order_by="PanelTimeSlot.start_time",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("panel_id", "date", name="uq_panel_availability_date"),
    )


class PanelTimeSlot(TimestampedModel):
    """
    A concrete bookable interval on one availability date.

    booked_by_workflow_id is a lookup reference only: there is no foreign key,
    so workflows and slots can be removed independently of each other.
    """

    __tablename__ = "panel_time_slot"

    availability_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("panel_availability.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # "HH:MM", zero-padded
    start_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
    )

    end_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
    )

    is_booked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    booked_by_workflow_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
    )

    booked_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    availability: Mapped["PanelAvailability"] = relationship(
        "PanelAvailability",
        back_populates="time_slots",
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_panel_time_slot_order"),
    )


class RecurringRule(TimestampedModel):
    """
    Weekday availability rule (0 = Sunday ... 6 = Saturday).
    """

    __tablename__ = "panel_recurring_rule"

    panel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("panel.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    day_of_week: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    panel: Mapped["Panel"] = relationship(
        "Panel",
        back_populates="recurring_rules",
    )

    templates: Mapped[List["RecurringSlotTemplate"]] = relationship(
        "RecurringSlotTemplate",
        back_populates="rule",
        cascade="all, delete-orphan",
        order_by="RecurringSlotTemplate.start_time",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("panel_id", "day_of_week", name="uq_panel_recurring_rule_day"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_panel_recurring_rule_day"),
    )


class RecurringSlotTemplate(TimestampedModel):
    """Start/end pair copied into every date a rule is expanded onto."""

    __tablename__ = "panel_recurring_slot"

    rule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("panel_recurring_rule.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    start_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
    )

    end_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
    )

    # Minutes; kept with the rule, not used to split slots
    slot_duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=60,
    )

    rule: Mapped["RecurringRule"] = relationship(
        "RecurringRule",
        back_populates="templates",
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_panel_recurring_slot_order"),
    )
