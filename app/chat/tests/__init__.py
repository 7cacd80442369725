"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Model constraints and ordering
- test_services.py: ConversationService and MessageStore
- test_pagination.py: Page-numbered history
- test_receipts.py: ReadReceiptService
- test_broadcast.py: DeliveryBroadcaster
- test_facade.py: MessagingFacade authorization and sequencing
- test_views.py: REST API endpoints
- test_consumers.py: WebSocket consumers

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
