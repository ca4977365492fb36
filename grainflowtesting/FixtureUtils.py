# Copyright (C) 2026 Advanced Media Workflow Association
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import os
import requests
from urllib.parse import urlparse

from . import Config as CONFIG

CHUNK_SIZE = 64 * 1024


def download(uri, staging_path=None, timeout=None):
    """Fetch the resource at uri into the staging directory and return its local path"""
    if staging_path is None:
        staging_path = CONFIG.STAGING_PATH
    if timeout is None:
        timeout = CONFIG.HTTP_TIMEOUT
    try:
        os.makedirs(staging_path)
    except FileExistsError:
        pass

    file_name = os.path.basename(urlparse(uri).path) or "index"
    local_path = os.path.join(staging_path, file_name)

    print(" * Downloading '{}' to '{}'".format(uri, local_path))
    with requests.get(uri, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        with open(local_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                f.write(chunk)
    return local_path


def remove_tree(path):
    """Remove a file or directory tree. Removing a path which doesn't exist does nothing."""
    if not os.path.lexists(path):
        return
    if not os.path.isdir(path) or os.path.islink(path):
        os.unlink(path)
        return

    # Directories are listed parents first, so removing them in reverse leaves each one empty when it is reached
    directories = []
    pending = [path]
    while pending:
        directory = pending.pop()
        directories.append(directory)
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    pending.append(entry.path)
                else:
                    os.unlink(entry.path)

    for directory in reversed(directories):
        os.rmdir(directory)
