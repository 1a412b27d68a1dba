"""
TranscodeFlow API
"""
