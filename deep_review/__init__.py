"""Deep Review CI helpers: extract critical issues, request reviewers, open Jira tickets."""

__version__ = "0.1.0"
