import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"
import warnings
warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")
import argparse
import logging
import random
import sys
from typing import List, Optional, Tuple

import pygame

from achievements import AchievementEvaluator
from audio import BeepAudio
from config import DIFFICULTY, SNAKE, TETRIS, VISUAL, colors
from session import ENGINES, GameSession, start_session
from snake_engine import SnakeSnapshot
from storage import DATA_FILE, JsonStorage

logger = logging.getLogger(__name__)

block_size = VISUAL['block_size']
grid_size = VISUAL['grid_size']
info_height = VISUAL['info_height']
panel_width = VISUAL['panel_width']

line_color = (50, 50, 50)
text_color = (255, 255, 255)
alert_color = (255, 0, 0)
gold_color = (245, 166, 35)

NOTIFICATION_MS = 4000

KEY_ACTIONS = {
    pygame.K_UP: 'up', pygame.K_w: 'up',
    pygame.K_DOWN: 'down', pygame.K_s: 'down',
    pygame.K_LEFT: 'left', pygame.K_a: 'left',
    pygame.K_RIGHT: 'right', pygame.K_d: 'right',
}


def window_size(game: Optional[str]) -> Tuple[int, int]:
    if game == 'snake':
        return SNAKE['board_width'] * grid_size, SNAKE['board_height'] * grid_size + info_height
    return TETRIS['board_width'] * block_size + panel_width, TETRIS['board_height'] * block_size + info_height


def draw_retro_bg(surface, stars):
    width, height = surface.get_size()
    surface.fill((5, 5, 20))
    for star in stars:
        brightness = random.randint(180, 255)
        pygame.draw.circle(surface, (brightness, brightness, 255), star, 1)
    for x in range(0, width, block_size):
        pygame.draw.line(surface, (20, 20, 40), (x, info_height), (x, height))
    for y in range(info_height, height, block_size):
        pygame.draw.line(surface, (20, 20, 40), (0, y), (width, y))


def piece_color(value: int):
    return colors['tetris_pieces'][value - 1]


def drawGrid(surface, board):
    rows, cols = board.shape
    for row in range(rows):
        for col in range(cols):
            rect = pygame.Rect(col * block_size, row * block_size + info_height, block_size, block_size)
            cell = int(board[row, col])
            if cell:
                pygame.draw.rect(surface, piece_color(cell), rect, border_radius=6)
                pygame.draw.rect(surface, (255, 255, 255), rect, 2, border_radius=6)
            else:
                pygame.draw.rect(surface, line_color, rect, 1)


def drawTetromino(surface, shape, off_x, off_y, color):
    for i, row in enumerate(shape):
        for j, cell in enumerate(row):
            if cell:
                x = off_x + j
                y = off_y + i
                if y >= 0:
                    rect = pygame.Rect(x * block_size, y * block_size + info_height, block_size, block_size)
                    pygame.draw.rect(surface, color, rect)
                    pygame.draw.rect(surface, (255, 255, 255), rect, 1)


def draw_ghost_piece(surface, shape, x, ghost_y, color):
    ghost_color = (color[0] // 2, color[1] // 2, color[2] // 2)
    for i, row in enumerate(shape):
        for j, cell in enumerate(row):
            if cell and ghost_y + i >= 0:
                ghost_rec = pygame.Rect((x + j) * block_size, (ghost_y + i) * block_size + info_height,
                                        block_size, block_size)
                pygame.draw.rect(surface, ghost_color, ghost_rec, 1)


def draw_next_piece(surface, font, next_shape, color):
    width = surface.get_width()
    label = font.render("Next:", True, text_color)
    surface.blit(label, (width - 100, info_height + 5))
    for i, row in enumerate(next_shape):
        for j, cell in enumerate(row):
            if cell:
                rect = pygame.Rect(width - 100 + j * 20, info_height + 30 + i * 20, 20, 20)
                pygame.draw.rect(surface, color, rect, border_radius=4)
                pygame.draw.rect(surface, (255, 255, 255), rect, 1)


def draw_info(surface, font, score, extra: str = ""):
    width = surface.get_width()
    pygame.draw.rect(surface, (30, 30, 30), (0, 0, width, info_height))
    score_text = font.render(f"Score: {score}", True, text_color)
    surface.blit(score_text, (10, 10))
    if extra:
        extra_text = font.render(extra, True, text_color)
        surface.blit(extra_text, (width - extra_text.get_width() - 10, 10))


def draw_snake(surface, snapshot: SnakeSnapshot):
    surface.fill(colors['background'])
    width, height = surface.get_size()
    for x in range(0, width + 1, grid_size):
        pygame.draw.line(surface, colors['grid'], (x, info_height), (x, height))
    for y in range(info_height, height + 1, grid_size):
        pygame.draw.line(surface, colors['grid'], (0, y), (width, y))

    for index, (x, y) in enumerate(snapshot.snake):
        color = colors['snake_head'] if index == 0 else colors['snake']
        rect = pygame.Rect(x * grid_size + 1, y * grid_size + info_height + 1, grid_size - 2, grid_size - 2)
        pygame.draw.rect(surface, color, rect)
        if index == 0:
            shine = pygame.Rect(rect.x + 1, rect.y + 1, grid_size - 8, grid_size - 8)
            pygame.draw.rect(surface, (200, 220, 255), shine)

    half = grid_size // 2
    if snapshot.food is not None:
        fx, fy = snapshot.food
        pygame.draw.circle(surface, colors['food'],
                           (fx * grid_size + half, fy * grid_size + info_height + half), half - 2)
    if snapshot.power_up is not None:
        px, py = snapshot.power_up.position
        center = (px * grid_size + half, py * grid_size + info_height + half)
        pygame.draw.circle(surface, colors['power_up'], center, half - 2)
        pygame.draw.circle(surface, (255, 255, 255), center, half // 3)


def draw_overlay(surface, font, big_font, paused, game_over, new_high_score=False, score=0):
    if not (paused or game_over):
        return
    width, height = surface.get_size()
    shade = pygame.Surface((width, height), pygame.SRCALPHA)
    shade.fill((0, 0, 0, 180))
    surface.blit(shade, (0, 0))
    if paused:
        lines = [("PAUSED", big_font, text_color), ("Press SPACE to resume", font, text_color)]
    else:
        lines = [("GAME OVER", big_font, alert_color)]
        if new_high_score:
            lines.append(("NEW HIGH SCORE!", font, gold_color))
        lines += [(f"Score: {score}", font, text_color),
                  ("R to restart - ESC for menu", font, text_color)]
    y = height // 2 - 60
    for text, text_font, color in lines:
        rendered = text_font.render(text, True, color)
        surface.blit(rendered, (width // 2 - rendered.get_width() // 2, y))
        y += rendered.get_height() + 12


def menu_lines(storage) -> List[str]:
    settings = storage.get_settings()
    lines = []
    for key, game in (('1', 'snake'), ('2', 'tetris')):
        progress = AchievementEvaluator(game, storage).progress()
        lines.append(f"{key} - {game.title():<7} best {storage.get_high_score(game)}, "
                     f"achievements {progress['unlocked']}/{progress['total']}")
    lines += [
        f"D - Difficulty: {settings.get('difficulty', 'normal')}",
        f"M - Sound: {'on' if settings.get('sound_enabled', True) else 'off'}",
        "X - Reset all data",
        "ESC - Quit",
    ]
    return lines


def draw_menu(surface, font, big_font, lines):
    draw_retro_bg(surface, [])
    width = surface.get_width()
    title = big_font.render("ARCADE", True, text_color)
    surface.blit(title, (width // 2 - title.get_width() // 2, 80))
    for i, line in enumerate(lines):
        rendered = font.render(line, True, text_color)
        surface.blit(rendered, (20, 200 + i * 40))


def toggle_sound(storage, audio) -> bool:
    """Flip and persist the sound setting. Returns the new state."""
    settings = storage.get_settings()
    settings['sound_enabled'] = not settings.get('sound_enabled', True)
    storage.set_settings(settings)
    audio.set_enabled(settings['sound_enabled'])
    return settings['sound_enabled']


def cycle_difficulty(storage) -> str:
    settings = storage.get_settings()
    levels = list(DIFFICULTY)
    current = settings.get('difficulty', 'normal')
    index = levels.index(current) if current in levels else -1
    settings['difficulty'] = levels[(index + 1) % len(levels)]
    storage.set_settings(settings)
    return settings['difficulty']


def handle_menu_key(key, storage, audio) -> Optional[str]:
    """Apply one menu key press. Returns a game name, 'quit', or None to stay on the menu."""
    if key == pygame.K_ESCAPE:
        return 'quit'
    if key == pygame.K_1:
        return 'snake'
    if key == pygame.K_2:
        return 'tetris'
    if key == pygame.K_d:
        cycle_difficulty(storage)
    elif key == pygame.K_m:
        toggle_sound(storage, audio)
    elif key == pygame.K_x:
        storage.clear_all()
        audio.set_enabled(storage.get_settings()['sound_enabled'])
        logger.info("All saved data cleared")
    return None


class PygameRenderer:
    """Draws engine snapshots onto a pygame surface."""

    def __init__(self, surface, font, stars: Optional[List[Tuple[int, int]]] = None):
        self.surface = surface
        self.font = font
        width, height = surface.get_size()
        self.stars = stars if stars is not None else [
            (random.randint(0, width - 1), random.randint(0, height - 1)) for _ in range(100)
        ]
        self.notifications = []

    def notify(self, achievement):
        self.notifications.append((achievement, pygame.time.get_ticks() + NOTIFICATION_MS))

    def render(self, snapshot):
        if isinstance(snapshot, SnakeSnapshot):
            draw_snake(self.surface, snapshot)
            draw_info(self.surface, self.font, snapshot.score, f"Length: {len(snapshot.snake)}")
        else:
            self.render_tetris(snapshot)
        self.draw_notifications()

    def render_tetris(self, snapshot):
        draw_retro_bg(self.surface, self.stars)
        drawGrid(self.surface, snapshot.board)
        if snapshot.piece is not None:
            color = piece_color(snapshot.piece_color)
            draw_ghost_piece(self.surface, snapshot.piece, snapshot.piece_x, snapshot.ghost_y, color)
            drawTetromino(self.surface, snapshot.piece, snapshot.piece_x, snapshot.piece_y, color)
        draw_next_piece(self.surface, self.font, snapshot.next_piece, piece_color(snapshot.next_color))
        draw_info(self.surface, self.font, snapshot.score, f"Lines: {snapshot.lines_cleared}")

    def draw_notifications(self):
        now = pygame.time.get_ticks()
        self.notifications = [(a, until) for a, until in self.notifications if until > now]
        for i, (achievement, _) in enumerate(self.notifications):
            text = self.font.render(f"Achievement: {achievement.name}", True, gold_color)
            self.surface.blit(text, (10, info_height + 10 + i * 24))


def game_loop(session: GameSession, font, big_font) -> bool:
    """Run one session until the player leaves. Returns False when the window was closed."""
    window = session.renderer.surface
    clock = pygame.time.Clock()
    while True:
        dt = clock.tick(VISUAL['fps'])
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type != pygame.KEYDOWN:
                continue
            over = session.is_game_over()
            if event.key == pygame.K_SPACE and not over:
                session.toggle_pause()
            elif event.key == pygame.K_r and over:
                session.restart()
            elif event.key == pygame.K_ESCAPE and (over or session.paused):
                return True
            elif event.key == pygame.K_m:
                toggle_sound(session.storage, session.audio)
            else:
                action = KEY_ACTIONS.get(event.key)
                if action:
                    session.handle(action)
        session.update(dt)
        session.render()
        draw_overlay(window, font, big_font, session.paused, session.is_game_over(),
                     session.new_high_score, session.score)
        pygame.display.update()


def menu_loop(storage, audio, font, big_font) -> Optional[str]:
    window = pygame.display.set_mode(window_size(None))
    clock = pygame.time.Clock()
    while True:
        clock.tick(30)
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return None
            if event.type != pygame.KEYDOWN:
                continue
            choice = handle_menu_key(event.key, storage, audio)
            if choice == 'quit':
                return None
            if choice in ENGINES:
                return choice
        draw_menu(window, font, big_font, menu_lines(storage))
        pygame.display.update()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="arcade", description="Snake and Tetris.")
    parser.add_argument("--game", choices=sorted(ENGINES), help="Skip the menu and start this game.")
    parser.add_argument("--difficulty", choices=sorted(DIFFICULTY), help="Set and save the difficulty.")
    parser.add_argument("--data", default=DATA_FILE, help="Save file for scores, settings and achievements.")
    parser.add_argument("--mute", action="store_true", help="Disable sound effects.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...).")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    storage = JsonStorage(args.data)
    settings = storage.get_settings()
    if args.difficulty:
        settings['difficulty'] = args.difficulty
        storage.set_settings(settings)

    pygame.init()
    pygame.display.set_caption("Arcade")
    font = pygame.font.Font(None, 24)
    big_font = pygame.font.Font(None, 48)

    audio = BeepAudio.from_settings(settings)
    if args.mute:
        audio.set_enabled(False)
    audio.init()

    game = args.game
    running = True
    while running:
        if game is None:
            game = menu_loop(storage, audio, font, big_font)
            if game is None:
                break
        window = pygame.display.set_mode(window_size(game))
        renderer = PygameRenderer(window, font)
        session = start_session(game, storage, audio=audio, notifier=renderer.notify, renderer=renderer)
        if session is None:
            print(f"Could not start {game}, back to menu.")
            game = None
            continue
        running = game_loop(session, font, big_font)
        print(f"{game}: score {session.score} (best {session.high_score})")
        session.destroy()
        game = None

    pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
