"""Command line entry point."""

from __future__ import annotations

from ec2manager.cli.main import EC2ManagerCLI, create_manager, main

__all__ = ["EC2ManagerCLI", "create_manager", "main"]
