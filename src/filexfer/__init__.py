"""filexfer: one-file-per-connection transfer over raw TCP.

The client sends each file as an unframed byte stream on its own connection;
the server saves whatever arrives before the peer closes to the next
``file-NN.dat``. Both sides share a single fixed-size buffer, which also caps
the largest file that can be moved.
"""

__all__ = []
