"""Anonymous FTP download of a single file."""

from __future__ import annotations

import ftplib
import io
import logging

from quotedl.core.exceptions import FetchError

logger = logging.getLogger(__name__)


def fetch_anonymous_ftp(
    host: str,
    directory: str,
    filename: str,
    port: int = 21,
    timeout: float = 5,
) -> bytes:
    """Log in as ``anonymous`` and retrieve ``directory/filename`` in passive mode.

    Raises:
        FetchError: Connection, login, directory change or transfer failure.
    """
    buffer = io.BytesIO()
    try:
        with ftplib.FTP(timeout=timeout) as ftp:
            ftp.connect(host, port)
            ftp.login("anonymous", "anonymous")
            ftp.cwd(directory)
            ftp.set_pasv(True)
            ftp.retrbinary(f"RETR {filename}", buffer.write)
    except (ftplib.Error, OSError, EOFError) as e:
        logger.error("ftp download of %s/%s from %s failed: %s", directory, filename, host, e)
        raise FetchError(
            f"ftp download of {filename} from {host} failed: {e}",
            context={"url": f"ftp://{host}:{port}/{directory}/{filename}"},
        ) from e

    data = buffer.getvalue()
    logger.debug("ftp: retrieved %d bytes of %s from %s", len(data), filename, host)
    return data
