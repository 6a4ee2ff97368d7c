type BitmapWord = int
type BlockNumber = int
type ChainId = int
type Liquidity = int
type SqrtPriceX96 = int
type Tick = int
type Word = int
