"""
BBS Client module.

Command line entry point invoked by the job engine before and after a build,
or explicitly from a pipeline script.
"""
