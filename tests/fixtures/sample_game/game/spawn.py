from game import Ghost, Health, Position, Velocity


def spawn_player(world):
    player = world.create_entity()
    player.attach(Position, 0, 0)
    player.attach(Velocity)
    player.attach(Health)
    return player


def spawn_projectile(world):
    return world.create_entity().attach(Velocity).attach(Position)


def spawn_spirit(world):
    spirit = world.create_entity()
    spirit.attach(Health)
    spirit.attach(Ghost)
    return spirit
