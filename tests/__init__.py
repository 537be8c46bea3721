"""
Rover client test suite

Structure:
- unit/: geometry, world objects, schema catalogs, decoder, actuators, controller, dispatcher
- integration/: sessions driven over real sockets
"""
