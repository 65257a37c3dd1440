"""
Bridge between a Lutron RadioRA2 gateway's integration (telnet) protocol and
applications that want to set, query and watch light levels.
"""

__version__ = '0.1'
