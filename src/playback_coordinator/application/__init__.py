"""
Application Layer

Use cases that compose the domain with the outside world:
- interfaces/: ports for the voice gateway and the song resolver
- services/: the music session facade and the completion driver
"""
