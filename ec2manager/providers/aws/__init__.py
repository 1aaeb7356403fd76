"""AWS provider implementation for ec2manager."""

from ec2manager.providers.aws.compute import EC2Manager
from ec2manager.providers.aws.pricing import PricingService

__all__ = ["EC2Manager", "PricingService"]
