"""Ticketing services: cart pricing, orders, ticket issuance and check-in."""
