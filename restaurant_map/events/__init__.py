"""
Restaurant-week events and the menus restaurants offer for them.
"""
