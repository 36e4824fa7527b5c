"""EC2 lookups."""

from __future__ import annotations

from .session import AWSClientProvider


class AvailabilityZoneRetriever:
    """Lists the availability zones of a region."""

    def __init__(self, client_provider: AWSClientProvider):
        self.client_provider = client_provider

    def retrieve(self, region: str) -> list[str]:
        """Return the region's availability zone names, sorted."""
        response = self.client_provider.get_ec2_client().describe_availability_zones(
            Filters=[{"Name": "region-name", "Values": [region]}]
        )
        return sorted(zone["ZoneName"] for zone in response.get("AvailabilityZones", []))
