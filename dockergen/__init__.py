"""Dockerfile generation client.

Starts Dockerfile generation jobs on the generation backend for a GitHub
repository and tracks them through a polling loop until the Dockerfile
is ready, the job fails, or the session times out.
"""

__version__ = "0.1.0"
