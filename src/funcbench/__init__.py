"""funcbench: benchmark a change against a reference branch in CI.

Runs the Go benchmark suite on both sides of a comparison and reports
old/new/delta tables on the terminal or as a pull request comment.
"""

__version__ = "0.1.0"
