"""
Quotesmith - AI quote generation from short videos or topics.

Sends a short video (or just a topic) to a remote generative model and gets
back a summary plus a set of quotes, remembering earlier sets so that repeat
requests avoid repeating themselves. Also drives a rotating library of
built-in quotes.
"""

__version__ = "0.1.0"
