"""SFTP Puller Application Package.

Process settings, the polling loop and the entry point.
"""
