"""zdp: document lifecycle management for numbered Markdown corpora."""
