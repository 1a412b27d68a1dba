"""
TranscodeFlow worker
"""
