"""Order lifecycle engine: pure functions over order records"""
