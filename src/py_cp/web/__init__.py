"""Browser-based web UI for py-cp.

A Flask application exposing the shell and the copy program over HTTP.
It is an **optional** extra — install with::

    pip install py-cp[web]
"""
