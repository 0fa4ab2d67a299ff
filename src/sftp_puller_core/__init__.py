"""SFTP Puller Core Package.

Configuration, errors, credentials, retry, logging and cancellation shared by
the transfer components and the application entry point.
"""
