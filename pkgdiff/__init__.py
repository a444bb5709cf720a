"""
package.json Dependency Diff Bot

A GitHub webhook service that compares the dependencies declared in every
modified package.json of a pull request and posts a summary as a commit comment.
"""

__version__ = "1.0.0"
__author__ = "pkgdiff maintainers"
