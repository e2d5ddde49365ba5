"""
moodtune - Playlists según la emoción detectada por webcam.
"""
