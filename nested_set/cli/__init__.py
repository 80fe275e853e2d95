"""
Command line interface for the nested set engine.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""
