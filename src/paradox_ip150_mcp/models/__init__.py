"""Data models for panel memory layout and connection state."""

from .labels import LABEL_LAYOUTS, LabelKind, LabelLayout, label_address
from .panel import PanelInfo
