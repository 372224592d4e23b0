"""This module serves as the initialization file for the core package of the career profile application.

It holds configuration and the exception hierarchy shared by the rest of the application.

Attributes:
    - None

Notes:
    1. This file is intentionally empty as it is used to initialize the package.
    2. The core functionality is organized in submodules within the core directory.

"""
