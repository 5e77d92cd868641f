from .notifier import LiveNotifier, MessageSender, create_stream_online_embed

__all__ = ["LiveNotifier", "MessageSender", "create_stream_online_embed"]
