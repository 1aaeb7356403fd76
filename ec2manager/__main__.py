#!/usr/bin/env python3
"""EC2 instance manager - interactive terminal dashboard."""

from ec2manager.cli import main

if __name__ == "__main__":
    main()
