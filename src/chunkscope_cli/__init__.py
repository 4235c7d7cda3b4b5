"""
chunkscope_cli - command-line front end for Chunkscope.
"""
