"""Runnable walkthroughs behind the Markdown tutorials in docs/."""
