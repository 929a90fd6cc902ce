"""Business services: resolution, classification, digests, routing, identity."""
