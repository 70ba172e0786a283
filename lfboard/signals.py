from blinker import Namespace


_signals = Namespace()

# Sent after the post has been committed. Receivers get the sender app and
# ``post=<sanitized post dict>``; anything caching the board list should drop it.
post_created = _signals.signal("post-created")
post_resolved = _signals.signal("post-resolved")
