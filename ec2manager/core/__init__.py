"""Core ec2manager functionality."""

from __future__ import annotations

from ec2manager.core.cache import EntityCache
from ec2manager.core.events import EventChannel
from ec2manager.core.machine import InstanceManager
from ec2manager.core.tasks import TaskOrchestrator

__all__ = ["EntityCache", "EventChannel", "InstanceManager", "TaskOrchestrator"]
