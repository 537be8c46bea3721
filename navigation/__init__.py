"""
Navigation — decision loop

- WorldMap: deduplicated registry of seen objects
- actuators: ordered throttle/steering states, one-notch commands
- RoverController: goal selection, heading control, collision avoidance
"""
