# blitz_installer/common/network_utils.py
# -*- coding: utf-8 -*-
"""
Downloading and unpacking of remote artifacts.

Downloads stream to disk with requests and always use a timeout. Both
helpers return False on failure after logging the cause; the caller decides
whether that failure ends the run.
"""

import logging
import zipfile
import zlib
from pathlib import Path
from typing import Optional, Union

import requests

module_logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def download_file(
    url: str,
    destination: Union[str, Path],
    timeout: float = 120,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Download a URL to a local file, following redirects.

    Args:
        url: The URL to download.
        destination: File path the body is written to. Parent directories
            are created. A partially written file is removed on failure.
        timeout: Connect/read timeout in seconds for the request.
        current_logger: Optional logger instance.

    Returns:
        True if the download was successful, False otherwise.
    """
    logger_to_use = current_logger if current_logger else module_logger
    download_path = Path(destination)
    logger_to_use.debug(f"Downloading {url} to {download_path}")
    response: Optional[requests.Response] = None

    try:
        download_path.parent.mkdir(parents=True, exist_ok=True)
        response = requests.get(
            url, stream=True, timeout=timeout, allow_redirects=True
        )
        response.raise_for_status()

        with open(download_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
        logger_to_use.debug(f"Downloaded {url} to {download_path}")
        return True
    except requests.exceptions.HTTPError as http_err:
        status_code = response.status_code if response is not None else "Unknown"
        logger_to_use.error(
            f"HTTP error downloading {url}: {http_err} - Status code: {status_code}"
        )
    except requests.exceptions.ConnectionError as conn_err:
        logger_to_use.error(f"Connection error downloading {url}: {conn_err}")
    except requests.exceptions.Timeout as timeout_err:
        logger_to_use.error(f"Timeout downloading {url}: {timeout_err}")
    except requests.exceptions.RequestException as req_err:
        logger_to_use.error(f"Request failed for {url}: {req_err}")
    except OSError as io_err:
        logger_to_use.error(f"File I/O error saving {url} to {download_path}: {io_err}")
    finally:
        if response is not None:
            response.close()

    if download_path.is_file():
        download_path.unlink()
    return False


def extract_zip_archive(
    zip_file_path: Union[str, Path],
    extract_to_dir: Union[str, Path],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Extract a zip archive into a directory, restoring the Unix permission
    bits recorded in the archive.

    Args:
        zip_file_path: The archive to extract.
        extract_to_dir: Target directory; created if missing.
        current_logger: Optional logger instance.

    Returns:
        True if extraction was successful, False otherwise.
    """
    logger_to_use = current_logger if current_logger else module_logger
    zip_path = Path(zip_file_path)
    extract_path = Path(extract_to_dir)

    if not zip_path.is_file():
        logger_to_use.error(f"Archive not found or is not a file: {zip_path}")
        return False

    try:
        extract_path.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(zip_path, "r") as zip_ref:
            for info in zip_ref.infolist():
                extracted = Path(zip_ref.extract(info, extract_path))
                mode = (info.external_attr >> 16) & 0o7777
                if mode and not info.is_dir():
                    extracted.chmod(mode)
            member_count = len(zip_ref.infolist())
        logger_to_use.debug(
            f"Extracted {member_count} entries from {zip_path} to {extract_path}"
        )
        return True
    except zipfile.BadZipFile:
        logger_to_use.error(f"'{zip_path}' is not a valid zip file or is corrupted.")
    except (zlib.error, EOFError) as data_err:
        logger_to_use.error(f"Corrupt data in {zip_path}: {data_err}")
    except (RuntimeError, NotImplementedError) as member_err:
        logger_to_use.error(f"Cannot extract {zip_path}: {member_err}")
    except OSError as io_err:
        logger_to_use.error(f"File I/O error during extraction of {zip_path}: {io_err}")
    return False
