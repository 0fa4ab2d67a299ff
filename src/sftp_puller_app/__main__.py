"""Allow ``python -m sftp_puller_app``."""

from sftp_puller_app.main import main

main()
