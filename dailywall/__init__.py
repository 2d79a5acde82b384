"""DailyWall - daily Bing/custom API wallpaper changer."""

__version__ = "0.1.0"
