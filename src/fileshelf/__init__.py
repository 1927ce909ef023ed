"""fileshelf - a small file-sharing server.

Uploads, raw downloads, custom short paths, in-file search and a shared
clipboard over HTTP.
"""
