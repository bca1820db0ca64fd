"""Deal pipeline -- canonical schemas, response normalizer, write validators and service.

Provides the Deal/DealNote models and DealStage enumeration, the normalizer
that reconciles the backend's inconsistent deal JSON, the client-side payload
validators, and DealService for the deal endpoints.
"""
