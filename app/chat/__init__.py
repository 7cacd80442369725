"""
Chat app for real-time messaging.

This app handles:
- Conversations (direct and group)
- Message sending and history
- Read receipts and unread counts
- WebSocket live delivery

Related apps:
    - authentication: User model and UserDirectory for participants

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.facade import MessagingFacade, SessionContext

    ctx = SessionContext.from_user(request.user)

    # Open (or reuse) a direct conversation
    conversation = MessagingFacade.resolve_direct(ctx, other_user.id).data

    # Send message
    result = MessagingFacade.send_message(ctx, conversation.id, "Hello!")
"""
