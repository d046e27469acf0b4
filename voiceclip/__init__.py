"""
VoiceClip - Hotkey voice transcription to the clipboard

Press the hotkey to start recording, press it again to transcribe.
The text is sent to Groq Cloud (Whisper) and placed on the clipboard.
"""

__version__ = "0.1.0"
__app_name__ = "voiceclip"
