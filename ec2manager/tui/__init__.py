"""Textual user interface for ec2manager."""

from ec2manager.tui.app import InstanceManagerTUI

__all__ = ["InstanceManagerTUI"]
